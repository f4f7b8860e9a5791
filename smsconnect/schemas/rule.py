"""Rule API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from smsconnect.models.rule import ConditionType, parse_condition_values


class RuleCreate(BaseModel):
    """Schema for creating a new rule."""

    condition_type: ConditionType = Field(..., description="Condition type")
    condition_values: list[int] = Field(
        default_factory=list,
        description="Product or category IDs, as a list or '12, 15, 20'",
    )
    order_status: str = Field(..., min_length=1, description="Order status, e.g. 'wc-completed'")
    sms_body: str = Field(default="", max_length=2000, description="SMS message template")
    alimtalk_template_code: str = Field(default="", max_length=100, description="Alimtalk template code")

    @field_validator("condition_values", mode="before")
    @classmethod
    def coerce_condition_values(cls, value: object) -> list[int]:
        return parse_condition_values(value)


class RuleResponse(BaseModel):
    """Schema for rule response."""

    rule_id: str
    condition_type: ConditionType
    condition_values: list[int]
    order_status: str
    sms_body: str
    alimtalk_template_code: str
    created_at: datetime


class RuleMatchRequest(BaseModel):
    """Dry-run input: which rule would an order with these items hit."""

    order_status: str = Field(..., min_length=1, description="Order status")
    product_ids: list[int] = Field(default_factory=list, description="Product IDs in the order")
    category_ids: list[int] = Field(default_factory=list, description="Category IDs in the order")


class RuleMatchResponse(BaseModel):
    """Dry-run result."""

    matched: bool = Field(..., description="Whether a rule matched")
    rule: RuleResponse | None = Field(default=None, description="First matching rule")

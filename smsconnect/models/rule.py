"""Rule domain models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ConditionType(str, Enum):
    """What a rule's condition values refer to."""

    PRODUCT = "product"
    CATEGORY = "category"


def generate_rule_id() -> str:
    return f"rule_{uuid.uuid4().hex[:12]}"


def parse_condition_values(value: object) -> list[int]:
    """Accept a list of ids or a comma separated string such as ``"12, 15, 20"``."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
        return [int(part) for part in parts if part]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [int(part) for part in value]
    raise ValueError("condition_values must be a list or a comma separated string")


class Rule(BaseModel):
    """Override routing orders with given products or categories to bespoke templates."""

    rule_id: str = Field(default_factory=generate_rule_id, description="Stable rule identifier")
    condition_type: ConditionType = Field(..., description="Condition type")
    condition_values: list[int] = Field(default_factory=list, description="Product or category IDs")
    order_status: str = Field(..., description="Order status the rule applies to")
    sms_body: str = Field(default="", description="SMS message template")
    alimtalk_template_code: str = Field(default="", description="Alimtalk template code")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("condition_values", mode="before")
    @classmethod
    def coerce_condition_values(cls, value: object) -> list[int]:
        return parse_condition_values(value)

    def matches_condition(self, product_ids: set[int], category_ids: set[int]) -> bool:
        """Check the rule's condition against an order's product and category ids."""
        values = set(self.condition_values)
        if self.condition_type == ConditionType.PRODUCT:
            return bool(values & product_ids)
        if self.condition_type == ConditionType.CATEGORY:
            return bool(values & category_ids)
        return False

    @property
    def has_template(self) -> bool:
        return bool(self.sms_body.strip() or self.alimtalk_template_code.strip())

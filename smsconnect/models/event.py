"""Event domain models.

An event carries a read-only snapshot of the object it concerns. The three
snapshot types form a tagged union on the ``type`` field so a posted event can
be validated without guessing what kind of object it describes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

DATE_FORMAT = "%Y-%m-%d"

SUBSCRIPTION_STATUS_NAMES = {
    "pending": "Pending",
    "active": "Active",
    "on-hold": "On hold",
    "cancelled": "Cancelled",
    "switched": "Switched",
    "expired": "Expired",
    "pending-cancel": "Pending Cancellation",
}


def _format_date(value: datetime | None) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


class EventKind(str, Enum):
    """Kind of domain event entering the dispatcher."""

    ORDER_STATUS_CHANGED = "order_status_changed"
    SUBSCRIPTION_STATUS_CHANGED = "subscription_status_changed"
    USER_REGISTERED = "user_registered"
    USER_ROLE_CHANGED = "user_role_changed"


class LineItem(BaseModel):
    """Order line item as seen by the rule matcher."""

    product_id: int = Field(..., description="Product ID")
    category_ids: list[int] = Field(default_factory=list, description="Product category term IDs")


class OrderContext(BaseModel):
    """Snapshot of an order."""

    type: Literal["order"] = "order"
    order_id: int
    order_number: str = ""
    status: str = ""
    date_created: datetime | None = None
    formatted_total: str = ""
    billing_first_name: str = ""
    billing_full_name: str = ""
    billing_phone: str = ""
    items: list[LineItem] = Field(default_factory=list)

    @property
    def subject_id(self) -> int:
        return self.order_id

    @property
    def phone(self) -> str:
        return self.billing_phone

    def variables(self, shop_name: str) -> dict[str, str]:
        return {
            "order_id": str(self.order_id),
            "order_number": self.order_number or str(self.order_id),
            "order_date": _format_date(self.date_created),
            "order_total": self.formatted_total,
            "customer_name": self.billing_first_name,
            "customer_fullname": self.billing_full_name,
            "billing_phone": self.billing_phone,
            "shop_name": shop_name,
        }

    def product_ids(self) -> set[int]:
        return {item.product_id for item in self.items}

    def category_ids(self) -> set[int]:
        return {cat_id for item in self.items for cat_id in item.category_ids}


class SubscriptionContext(BaseModel):
    """Snapshot of a subscription and, when known, its parent order."""

    type: Literal["subscription"] = "subscription"
    subscription_id: int
    status: str = ""
    date_created: datetime | None = None
    next_payment: datetime | None = None
    billing_first_name: str = ""
    billing_full_name: str = ""
    billing_phone: str = ""
    parent: OrderContext | None = None

    @property
    def subject_id(self) -> int:
        return self.subscription_id

    @property
    def phone(self) -> str:
        return self.billing_phone

    def variables(self, shop_name: str) -> dict[str, str]:
        return {
            "subscription_id": str(self.subscription_id),
            "subscription_status": SUBSCRIPTION_STATUS_NAMES.get(self.status, self.status),
            "subscription_start_date": _format_date(self.date_created),
            "subscription_next_payment": _format_date(self.next_payment),
            "customer_name": self.billing_first_name,
            "customer_fullname": self.billing_full_name,
            "billing_phone": self.billing_phone,
            "shop_name": shop_name,
        }


class UserContext(BaseModel):
    """Snapshot of a site user."""

    type: Literal["user"] = "user"
    user_id: int
    user_login: str = ""
    user_email: str = ""
    display_name: str = ""
    billing_phone: str = ""

    @property
    def subject_id(self) -> int:
        return self.user_id

    @property
    def phone(self) -> str:
        return self.billing_phone

    def variables(self, shop_name: str) -> dict[str, str]:
        return {
            "user_id": str(self.user_id),
            "user_login": self.user_login,
            "user_email": self.user_email,
            "user_display_name": self.display_name,
            "billing_phone": self.billing_phone,
            "shop_name": shop_name,
        }


EventContext = Annotated[
    OrderContext | SubscriptionContext | UserContext,
    Field(discriminator="type"),
]

_CONTEXT_FOR_KIND = {
    EventKind.ORDER_STATUS_CHANGED: OrderContext,
    EventKind.SUBSCRIPTION_STATUS_CHANGED: SubscriptionContext,
    EventKind.USER_REGISTERED: UserContext,
    EventKind.USER_ROLE_CHANGED: UserContext,
}


class NotificationEvent(BaseModel):
    """Unit of work handed to the dispatcher by a hook handler."""

    event_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex[:16],
        description="Event identifier used for tracing",
    )
    kind: EventKind = Field(..., description="Event kind")
    status_key: str = Field(
        ...,
        min_length=1,
        description="Template lookup key, e.g. 'wc-completed' or 'user_register'",
    )
    context: EventContext = Field(..., description="Snapshot of the affected object")
    extra_vars: dict[str, str] = Field(
        default_factory=dict,
        description="Event-specific template values that override the context table",
    )

    @model_validator(mode="after")
    def validate_context(self) -> "NotificationEvent":
        """Ensure the context type fits the event kind."""
        expected = _CONTEXT_FOR_KIND[self.kind]
        if not isinstance(self.context, expected):
            raise ValueError(
                f"{self.kind.value} events require a {expected.__name__} context"
            )
        return self

    @property
    def is_user_event(self) -> bool:
        return self.kind in (EventKind.USER_REGISTERED, EventKind.USER_ROLE_CHANGED)

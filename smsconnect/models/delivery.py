"""Delivery result and log models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ChannelType(str, Enum):
    """Message type as recorded in the delivery log."""

    SMS = "SMS"
    LMS = "LMS"
    ALIMTALK = "Alimtalk"


class DeliveryStatus(str, Enum):
    """Outcome of a single send attempt."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class ChannelResult(BaseModel):
    """Successful provider response."""

    status_code: int = Field(..., description="HTTP status code")
    body: str = Field(default="", description="Raw response body")


class DeliveryLogEntry(BaseModel):
    """Immutable record of one send attempt."""

    model_config = {"frozen": True}

    sent_at: datetime = Field(default_factory=datetime.utcnow)
    subject_id: int = Field(..., description="Order, subscription or user ID")
    recipient: str = Field(..., description="Recipient phone number")
    channel_type: ChannelType = Field(..., description="SMS, LMS or Alimtalk")
    status: DeliveryStatus = Field(..., description="Success or Failure")
    message_body: str = Field(default="", description="Rendered message text")
    template_code: str = Field(default="", description="Alimtalk template code")
    raw_response: str = Field(default="", description="Provider response or error detail")

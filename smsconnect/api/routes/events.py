"""Event intake API routes.

Host hook handlers post events here; each one is dispatched inline.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from smsconnect.api.deps import DispatcherDep
from smsconnect.models.delivery import DeliveryLogEntry
from smsconnect.models.event import NotificationEvent
from smsconnect.schemas.common import APIResponse

router = APIRouter(prefix="/events", tags=["events"])


class DispatchResult(BaseModel):
    """Outcome of dispatching one event."""

    event_id: str = Field(..., description="Event identifier")
    deliveries: list[DeliveryLogEntry] = Field(default_factory=list, description="Send attempts")


@router.post("", response_model=APIResponse[DispatchResult])
async def receive_event(
    event: NotificationEvent,
    dispatcher: DispatcherDep,
) -> APIResponse[DispatchResult]:
    """Dispatch an event. Send failures are reported in the result, not as errors."""
    entries = await dispatcher.dispatch(event)
    return APIResponse(data=DispatchResult(event_id=event.event_id, deliveries=entries))

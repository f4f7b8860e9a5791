"""Delivery history API routes."""

from fastapi import APIRouter

from smsconnect.api.deps import DeliveryLogDep, PaginationDep
from smsconnect.models.delivery import DeliveryLogEntry
from smsconnect.schemas.common import PaginatedResponse

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=PaginatedResponse[DeliveryLogEntry])
async def list_history(
    log: DeliveryLogDep,
    pagination: PaginationDep,
) -> PaginatedResponse[DeliveryLogEntry]:
    """List delivery records, newest first."""
    entries = await log.recent(offset=pagination.offset, limit=pagination.page_size)
    return PaginatedResponse(
        data=entries,
        total=await log.count(),
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/{subject_id}", response_model=PaginatedResponse[DeliveryLogEntry])
async def get_subject_history(
    subject_id: int,
    log: DeliveryLogDep,
    pagination: PaginationDep,
) -> PaginatedResponse[DeliveryLogEntry]:
    """List delivery records for one order, subscription or user."""
    entries = await log.for_subject(subject_id)
    start = pagination.offset
    return PaginatedResponse(
        data=entries[start:start + pagination.page_size],
        total=len(entries),
        page=pagination.page,
        page_size=pagination.page_size,
    )

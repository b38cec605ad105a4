"""
Event endpoints. Reads are public; writes require an admin.
Listing pages are cached in Redis; single events never are.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.core.metrics import record_event_change
from app.core.security import require_admin
from app.db.session import get_db
from app.models.event import EventCategory
from app.models.user import User
from app.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from app.services.cache_service import (
    get_cached_events,
    invalidate_event_cache,
    make_event_list_key,
    set_cached_events,
)
from app.services.event_service import (
    create_event,
    delete_event,
    get_event,
    list_events,
    update_event,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    category: Optional[EventCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination, soonest first.
    Cached in Redis until the TTL expires or any event/booking changes.
    """
    cache_key = make_event_list_key(page, page_size, upcoming_only, category.value if category else None)
    cached = await get_cached_events(cache_key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, upcoming_only, category)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(cache_key, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Single event with its live ticket count."""
    return await get_event(db, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await create_event(db, event_data, admin.id)
    record_event_change("create")
    await invalidate_event_cache()
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. A capacity change keeps the number of booked tickets."""
    event = await update_event(db, event_id, event_data)
    record_event_change("update")
    await invalidate_event_cache()
    return event


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(
    event_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event together with all of its bookings."""
    bookings_deleted = await delete_event(db, event_id)
    record_event_change("delete")
    await invalidate_event_cache()
    return EventDeleteResponse(
        message="Event and related bookings deleted successfully",
        event_id=event_id,
        bookings_deleted=bookings_deleted,
    )

"""
Event service handling CRUD operations and the delete cascade.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import InventoryConflict, NotFound, ValidationFailed
from app.core.logging import get_logger
from app.models.booking import Booking
from app.models.event import Event, EventCategory
from app.schemas.event import EventCreate, EventUpdate

logger = get_logger(__name__)
settings = get_settings()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_event(db: AsyncSession, event_data: EventCreate, creator_id: int) -> Event:
    """Create a new event; inventory starts full unless an explicit count is given."""
    if _as_utc(event_data.date) <= datetime.now(timezone.utc):
        raise ValidationFailed("Event date must be in the future")

    available = event_data.available_tickets
    if available is None:
        available = event_data.capacity

    event = Event(
        name=event_data.name,
        description=event_data.description,
        category=event_data.category.value,
        date=event_data.date,
        venue=event_data.venue,
        price=event_data.price,
        image=event_data.image or settings.DEFAULT_EVENT_IMAGE,
        capacity=event_data.capacity,
        available_tickets=available,
        tags=event_data.tags,
        created_by=creator_id,
    )
    db.add(event)
    await db.flush()
    await db.commit()

    event = await get_event(db, event.id)
    logger.info("event_created", event_id=event.id, name=event.name, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound("Event not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
    category: Optional[EventCategory] = None,
) -> tuple[list[Event], int]:
    """
    List events with pagination, ordered by date.
    Uses ix_events_date, or ix_events_category_date when filtering by category.
    """
    query = select(Event)

    if upcoming_only:
        query = query.where(Event.date >= datetime.now(timezone.utc))
    if category is not None:
        query = query.where(Event.category == category.value)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    events_query = (
        query
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
    """
    Apply a partial update.

    A capacity change moves available_tickets by the same delta so the number
    of booked tickets is preserved. That happens in the same UPDATE, guarded
    so capacity can never drop below what is already booked. An explicit
    available_tickets may never free up tickets that are held by bookings.
    """
    event = await get_event(db, event_id)
    changes = event_data.model_dump(exclude_unset=True)

    capacity = changes.pop("capacity", None)
    available = changes.pop("available_tickets", None)

    if "category" in changes and changes["category"] is not None:
        changes["category"] = changes["category"].value
    if "image" in changes and not changes["image"]:
        changes["image"] = settings.DEFAULT_EVENT_IMAGE
    for field in ("name", "description", "date", "venue", "price", "tags", "category"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")
    if "date" in changes and _as_utc(changes["date"]) <= datetime.now(timezone.utc):
        raise ValidationFailed("Event date must be in the future")

    stmt = update(Event).where(Event.id == event_id)
    conflict_message = "Capacity cannot be lower than the number of tickets already booked"

    if available is not None:
        new_capacity = capacity if capacity is not None else event.capacity
        if available > new_capacity:
            raise ValidationFailed("available_tickets cannot exceed capacity")
        changes["available_tickets"] = available
        if capacity is not None:
            changes["capacity"] = capacity
            stmt = stmt.where(Event.capacity - Event.available_tickets <= capacity - available)
        else:
            # Capacity unchanged: free tickets may shrink but never grow past the booked count
            stmt = stmt.where(Event.available_tickets >= available)
        conflict_message = "available_tickets cannot exceed capacity minus tickets already booked"
    elif capacity is not None:
        stmt = stmt.where(Event.capacity - Event.available_tickets <= capacity)
        changes["capacity"] = capacity
        changes["available_tickets"] = Event.available_tickets + (capacity - Event.capacity)

    if changes:
        result = await db.execute(
            stmt.values(**changes).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            logger.warning("event_update_conflict", event_id=event_id, capacity=capacity)
            raise InventoryConflict(conflict_message)
        await db.commit()

    event = await get_event(db, event_id)
    logger.info("event_updated", event_id=event_id, fields=sorted(event_data.model_fields_set))
    return event


async def delete_event(db: AsyncSession, event_id: int) -> int:
    """
    Delete an event and every booking that references it, in one transaction.
    Returns the number of bookings removed. No inventory is restored anywhere.
    """
    await get_event(db, event_id)

    result = await db.execute(
        delete(Booking)
        .where(Booking.event_id == event_id)
        .execution_options(synchronize_session=False)
    )
    bookings_deleted = result.rowcount
    await db.execute(
        delete(Event).where(Event.id == event_id).execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info("event_deleted", event_id=event_id, bookings_deleted=bookings_deleted)
    return bookings_deleted

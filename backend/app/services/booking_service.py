"""
Booking service: keeps events.available_tickets consistent with the set of
live bookings.

CONCURRENCY STRATEGY: Atomic Conditional Decrement
===================================================

Problem:
  Two users try to book the last ticket simultaneously.
  Both read available_tickets=1, both decrement to 0, both insert a booking.
  Result: oversell.

Solution:
  The availability check and the decrement are one statement:

    UPDATE events SET available_tickets = available_tickets - 1
    WHERE id = :event_id AND available_tickets >= 1

  If rows_affected == 0 the ticket is gone and the caller gets
  InsufficientInventory. No version column, no retries, no row locks held
  across round-trips. The CHECK constraint (available_tickets >= 0) is the
  final safety net.

  The decrement and the booking INSERT run in one transaction, so a failure
  between them (including a unique-constraint violation when the same user
  books from two tabs at once) rolls both back and cannot leak a ticket.
  Cancellation mirrors this: increment and DELETE commit together.

Booking lifecycle:
  (none) -> confirmed -> (deleted)
  Cancelling removes the row after restoring the ticket, which is what lets a
  user book the same event again later.

The pre-reads before the conditional UPDATE only decide which error to
report (not found, sold out, duplicate); the UPDATE and the unique
constraint are what actually enforce the invariants.
"""

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.core.exceptions import (
    BookingStateError,
    DuplicateBooking,
    Forbidden,
    InsufficientInventory,
    InventoryConflict,
    NotFound,
)
from app.core.logging import get_logger
from app.models.booking import Booking, BookingStatus
from app.models.event import Event

logger = get_logger(__name__)

TICKETS_PER_BOOKING = 1


async def reserve_tickets(db: AsyncSession, event_id: int, tickets: int = TICKETS_PER_BOOKING) -> bool:
    """Atomically take `tickets` from an event. False if the event is missing or short."""
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_tickets >= tickets)
        .values(available_tickets=Event.available_tickets - tickets)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_tickets(db: AsyncSession, event_id: int, tickets: int = TICKETS_PER_BOOKING) -> bool:
    """Atomically give `tickets` back, never past capacity."""
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_tickets + tickets <= Event.capacity)
        .values(available_tickets=Event.available_tickets + tickets)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _load_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.event))
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def book_ticket(db: AsyncSession, user_id: int, event_id: int) -> Booking:
    """
    Book one ticket for `user_id` on `event_id`.

    Failure order: NotFound, InsufficientInventory, DuplicateBooking.
    """
    event = (
        await db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if event is None:
        logger.warning("booking_failed", reason="event_not_found", event_id=event_id, user_id=user_id)
        raise NotFound("Event not found")

    if event.available_tickets < TICKETS_PER_BOOKING:
        logger.warning("booking_failed", reason="sold_out", event_id=event_id, user_id=user_id)
        raise InsufficientInventory()

    existing = await db.execute(
        select(Booking.id).where(Booking.user_id == user_id, Booking.event_id == event_id)
    )
    if existing.scalar_one_or_none() is not None:
        logger.warning("booking_failed", reason="duplicate", event_id=event_id, user_id=user_id)
        raise DuplicateBooking()

    # Price is frozen now; a later admin price change does not touch this booking
    total_price = event.price * TICKETS_PER_BOOKING

    if not await reserve_tickets(db, event_id):
        # Lost the race between the read above and the UPDATE: either the last
        # ticket went to someone else or the event was deleted meanwhile
        still_exists = (
            await db.execute(select(Event.id).where(Event.id == event_id))
        ).scalar_one_or_none()
        await db.rollback()
        if still_exists is None:
            logger.warning("booking_failed", reason="event_deleted_race", event_id=event_id, user_id=user_id)
            raise NotFound("Event not found")
        logger.warning("booking_failed", reason="sold_out_race", event_id=event_id, user_id=user_id)
        raise InsufficientInventory()

    booking = Booking(
        user_id=user_id,
        event_id=event_id,
        tickets=TICKETS_PER_BOOKING,
        total_price=total_price,
        status=BookingStatus.CONFIRMED.value,
    )
    db.add(booking)
    try:
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        # Same user booking from two places at once; the decrement is undone too
        await db.rollback()
        logger.warning("booking_failed", reason="duplicate_race", event_id=event_id, user_id=user_id)
        raise DuplicateBooking() from e

    booking = await _load_booking(db, booking.id)
    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        event_id=event_id,
        total_price=booking.total_price,
        tickets_left=booking.event.available_tickets,
    )
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int, user_id: int) -> int:
    """
    Cancel (delete) a booking owned by `user_id` and restore its tickets.
    Returns the id of the removed booking.
    """
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()

    if booking is None:
        raise NotFound("Booking not found")

    if booking.user_id != user_id:
        logger.warning("cancel_forbidden", booking_id=booking_id, user_id=user_id, owner_id=booking.user_id)
        raise Forbidden("Not authorized to cancel this booking")

    if not BookingStatus(booking.status).cancellable:
        raise BookingStateError(f"Booking cannot be cancelled from status '{booking.status}'")

    event_id = booking.event_id
    tickets = booking.tickets

    if not await release_tickets(db, event_id, tickets):
        event_exists = (
            await db.execute(select(Event.id).where(Event.id == event_id))
        ).scalar_one_or_none()
        await db.rollback()
        if event_exists is None:
            raise NotFound("Event not found")
        logger.error("cancel_inventory_conflict", booking_id=booking_id, event_id=event_id)
        raise InventoryConflict("Event inventory is already at capacity")

    await db.delete(booking)
    await db.commit()

    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        user_id=user_id,
        event_id=event_id,
        tickets_restored=tickets,
    )
    return booking_id


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """All bookings for a user with their events, newest first."""
    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.event))
        .where(Booking.user_id == user_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def count_event_bookings(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Booking).where(Booking.event_id == event_id)
    )
    return result.scalar_one()

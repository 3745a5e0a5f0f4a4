# Status flow: reserved -> checked_in -> completed, reserved -> cancelled | no_show.
import logging
import secrets
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from . import config, crud, models, schemas
from .errors import (
    BookingError, ConflictError, InvalidTransitionError, NotFoundError, TransientStoreError,
    ValidationError,
)
from .slots import hhmm, is_on_grid

logger = logging.getLogger(__name__)

TRANSITIONS = {
    models.PENDING: {models.CHECKED_IN, models.CANCELLED, models.NO_SHOW},
    models.CONFIRMED: {models.CHECKED_IN, models.CANCELLED, models.NO_SHOW},
    models.CHECKED_IN: {models.COMPLETED},
    models.COMPLETED: set(),
    models.CANCELLED: set(),
    models.NO_SHOW: set(),
}

CODE_PREFIX = 'CRUO'
CONFLICT_MESSAGE = 'The selected time overlaps an existing booking for this room'
_BASE36 = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'


def assert_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot move booking from {current} to {target}")


def sources_for(target: str):
    return [s for s, targets in TRANSITIONS.items() if target in targets]


def transition(db: Session, booking: models.Booking, target: str, **values) -> bool:
    """Conditional status update; False when another writer got there first. Caller commits."""
    assert_transition(booking.status, target)
    updated = db.query(models.Booking).filter(
        models.Booking.id == booking.id,
        models.Booking.status.in_(sources_for(target)),
    ).update(dict(status=target, **values), synchronize_session=False)
    if updated != 1:
        return False
    if target not in models.ACTIVE_STATUSES:
        crud.release_claims(db, booking.id)
    return True


@contextmanager
def store_guard(db: Session):
    """Roll back on failure and map store errors onto the booking taxonomy."""
    try:
        yield
    except BookingError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(CONFLICT_MESSAGE) from e
    except OperationalError as e:
        db.rollback()
        logger.warning("Booking store unavailable: %s", e)
        raise TransientStoreError('Booking store is unavailable, please retry') from e


def _base36(n: int) -> str:
    out = ''
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if n == 0:
            return out


def make_checkin_code(room_id: str, now: datetime) -> str:
    stamp = _base36(int(now.timestamp() * 1000))
    return f"{CODE_PREFIX}-{room_id[:8]}-{stamp}{secrets.token_hex(3).upper()}"


def _ensure_free(db: Session, room_id, day, start, end):
    for b in crud.active_bookings_for_day(db, room_id, day):
        if b.start_time < end and start < b.end_time:
            raise ConflictError(
                f"{CONFLICT_MESSAGE} ({b.start_time:%H:%M}-{b.end_time:%H:%M})"
            )


def _validate_request(payload: schemas.BookingCreate, user_id):
    if not user_id:
        raise ValidationError('A user id is required')
    if not (payload.title or '').strip():
        raise ValidationError('Please provide a title for your booking')
    # Stored times are naive campus-local times
    if payload.start_time.tzinfo is not None or payload.end_time.tzinfo is not None:
        raise ValidationError('Times must be local times without a UTC offset')
    if payload.start_time >= payload.end_time:
        raise ValidationError('Start time must be before end time')
    if payload.attendees_count is None or payload.attendees_count < 1:
        raise ValidationError('At least one attendee is required')


def create_booking(db: Session, payload: schemas.BookingCreate, user_id: str, now=None) -> models.Booking:
    # Overlap check and insert share one transaction; slot_claims catches a racing insert
    now = now or datetime.now()
    _validate_request(payload, user_id)
    start, end = payload.start_time, payload.end_time

    with store_guard(db):
        room = db.query(models.Room).filter(
            models.Room.room_id == payload.room_id
        ).with_for_update().first()
        if room is None:
            raise NotFoundError('Room not found')
        if not room.is_active:
            raise ValidationError(f"{room.name} is not accepting bookings")
        if payload.attendees_count > (room.capacity or 0):
            raise ValidationError(f"{room.name} seats at most {room.capacity} attendees")
        # Overlap is reported before grid misalignment
        _ensure_free(db, room.room_id, payload.date, start, end)
        if not is_on_grid(start) or not is_on_grid(end):
            raise ValidationError(
                f"Bookings must start and end on the hour between "
                f"{hhmm(config.SLOT_FIRST_HOUR)} and {hhmm(config.SLOT_LAST_HOUR)}"
            )

        booking = models.Booking(
            room_id=room.room_id,
            user_id=user_id,
            title=payload.title.strip(),
            purpose=(payload.purpose or '').strip() or None,
            date=payload.date,
            start_time=start,
            end_time=end,
            attendees_count=payload.attendees_count,
            status=models.CONFIRMED,
            qr_code=make_checkin_code(room.room_id, now),
            created_at=now,
        )
        booking.claims = [
            models.SlotClaim(room_id=room.room_id, date=payload.date, hour=h)
            for h in range(start.hour, end.hour)
        ]
        db.add(booking)
        db.commit()

    db.refresh(booking)
    logger.info("Booking %s created for room %s on %s %s-%s by %s",
                booking.id, booking.room_id, booking.date, hhmm(start.hour), hhmm(end.hour), user_id)
    return booking


def get_owned_booking(db: Session, booking_id: int, user_id: str) -> models.Booking:
    booking = crud.get_booking(db, booking_id)
    # Other users' bookings are reported as missing
    if booking is None or booking.user_id != user_id:
        raise NotFoundError('Booking not found')
    return booking


def cancel_booking(db: Session, booking_id: int, user_id: str) -> models.Booking:
    with store_guard(db):
        booking = get_owned_booking(db, booking_id, user_id)
        if not transition(db, booking, models.CANCELLED):
            raise InvalidTransitionError('Booking changed status before it could be cancelled')
        db.commit()
    db.refresh(booking)
    logger.info("Booking %s cancelled by %s", booking.id, user_id)
    return booking


def list_user_bookings(db: Session, user_id: str):
    return crud.bookings_for_user(db, user_id)

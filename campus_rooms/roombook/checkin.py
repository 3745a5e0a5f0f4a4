# QR code check-in and check-out
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from . import crud, models
from .errors import AlreadyInStateError, InvalidTransitionError, NotFoundError
from .lifecycle import get_owned_booking, store_guard, transition

logger = logging.getLogger(__name__)

# Same text whether the code is unknown or belongs to someone else
INVALID_CODE_MESSAGE = 'Invalid QR code or booking not found'


def check_in(db: Session, code: str, user_id: str, now=None) -> models.Booking:
    now = now or datetime.now()
    code = (code or '').strip()
    with store_guard(db):
        booking = crud.get_booking_by_code(db, code) if code else None
        if booking is None or booking.user_id != user_id:
            raise NotFoundError(INVALID_CODE_MESSAGE)
        if booking.status == models.CHECKED_IN:
            raise AlreadyInStateError('Already checked in')
        if booking.status not in models.RESERVED_STATUSES:
            raise InvalidTransitionError(f"Booking is {booking.status.replace('_', ' ')} and cannot be checked in")
        if not transition(db, booking, models.CHECKED_IN, checked_in_at=now):
            # Another writer changed the status after we read it
            db.refresh(booking)
            if booking.status == models.CHECKED_IN:
                raise AlreadyInStateError('Already checked in')
            raise InvalidTransitionError(f"Booking is {booking.status.replace('_', ' ')} and cannot be checked in")
        crud.add_audit_event(db, 'check_in', booking.room_id, user_id,
                             {'booking_id': booking.id, 'action': 'check_in'})
        db.commit()
    db.refresh(booking)
    logger.info("Booking %s checked in by %s", booking.id, user_id)
    return booking


def check_out(db: Session, booking_id: int, user_id: str, now=None) -> models.Booking:
    now = now or datetime.now()
    with store_guard(db):
        booking = get_owned_booking(db, booking_id, user_id)
        if not transition(db, booking, models.COMPLETED, checked_out_at=now):
            raise InvalidTransitionError('Booking is no longer checked in')
        crud.add_audit_event(db, 'check_out', booking.room_id, user_id,
                             {'booking_id': booking.id, 'action': 'check_out'})
        db.commit()
    db.refresh(booking)
    logger.info("Booking %s checked out by %s", booking.id, user_id)
    return booking

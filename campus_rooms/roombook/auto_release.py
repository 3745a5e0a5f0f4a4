# Reserved bookings nobody checked in to become no_show after the grace window.
import logging
import threading
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from . import config, crud, models
from .lifecycle import transition

logger = logging.getLogger(__name__)

RELEASE_EVENT = 'auto_release'
RELEASE_REASON = 'no_checkin_15min'


def release_due(start_time, now: datetime, grace: timedelta) -> bool:
    return now > datetime.combine(now.date(), start_time) + grace


def _release(db: Session, booking_id: int) -> bool:
    booking = crud.get_booking(db, booking_id)
    if booking is None or booking.status not in models.RESERVED_STATUSES:
        return False
    if not transition(db, booking, models.NO_SHOW):
        return False
    crud.add_audit_event(db, RELEASE_EVENT, booking.room_id, booking.user_id,
                         {'booking_id': booking.id, 'reason': RELEASE_REASON})
    db.commit()
    logger.info("Released booking %s (%s)", booking.id, booking.title)
    return True


def run_auto_release(db: Session, now=None):
    # Per-booking failures are logged and retried by the next run
    now = now or datetime.now()
    grace = timedelta(minutes=config.AUTO_RELEASE_GRACE_MINUTES)
    logger.info("Running auto-release check at %s", now.isoformat())

    # Plain tuples: a rollback below must not expire what we iterate over
    candidates = db.query(models.Booking.id, models.Booking.start_time).filter(
        models.Booking.date == now.date(),
        models.Booking.status.in_(models.RESERVED_STATUSES),
        models.Booking.start_time < now.time(),
    ).order_by(models.Booking.start_time).all()
    logger.info("Found bookings to check: %d", len(candidates))

    released = 0
    for booking_id, start_time in candidates:
        if not release_due(start_time, now, grace):
            continue
        try:
            if _release(db, booking_id):
                released += 1
        except Exception:
            db.rollback()
            logger.exception("Error updating booking %s", booking_id)

    result = {
        'checked_at': now,
        'bookings_checked': len(candidates),
        'bookings_released': released,
    }
    logger.info("Auto-release result: %s", result)
    return result


def auto_release_loop(session_factory, interval: float, stop: threading.Event):
    while not stop.is_set():
        db = session_factory()
        try:
            run_auto_release(db)
        except Exception:
            logger.exception("Auto-release sweep failed")
        finally:
            db.close()
        stop.wait(interval)


def start_auto_release_thread(session_factory, interval=None):
    stop = threading.Event()
    t = threading.Thread(
        target=auto_release_loop,
        args=(session_factory, interval or config.AUTO_RELEASE_INTERVAL_SECONDS, stop),
        name='auto-release',
        daemon=True,
    )
    t.start()
    return t, stop

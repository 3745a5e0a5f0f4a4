from sqlalchemy.orm import Session
from . import models


def get_rooms(db: Session, skip: int = 0, limit: int = 100):
    return db.query(models.Room).order_by(models.Room.name).offset(skip).limit(limit).all()


def get_room_by_id(db: Session, room_id: str):
    return db.query(models.Room).filter(models.Room.room_id == room_id).first()


def rooms_filtered(db: Session, q=None, room_type=None, min_capacity=None, active_only=True):
    query = db.query(models.Room)
    if active_only:
        query = query.filter(models.Room.is_active.is_(True))
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(
            models.Room.name.ilike(like) | models.Room.building.ilike(like)
        )
    if room_type:
        query = query.filter(models.Room.type == room_type)
    if min_capacity:
        query = query.filter(models.Room.capacity >= int(min_capacity))
    return query.order_by(models.Room.name).all()


def active_bookings_for_day(db: Session, room_id: str, day):
    return db.query(models.Booking).filter(
        models.Booking.room_id == room_id,
        models.Booking.date == day,
        models.Booking.status.in_(models.ACTIVE_STATUSES),
    ).order_by(models.Booking.start_time).all()


def active_bookings_on(db: Session, day):
    return db.query(models.Booking).filter(
        models.Booking.date == day,
        models.Booking.status.in_(models.ACTIVE_STATUSES),
    ).all()


def get_booking(db: Session, booking_id: int):
    return db.query(models.Booking).filter(models.Booking.id == booking_id).first()


def get_booking_by_code(db: Session, code: str):
    return db.query(models.Booking).filter(models.Booking.qr_code == code).first()


def bookings_for_user(db: Session, user_id: str):
    return db.query(models.Booking).filter(models.Booking.user_id == user_id).order_by(
        models.Booking.date.desc(), models.Booking.start_time.desc()
    ).all()


def add_audit_event(db: Session, event_type: str, room_id: str, user_id: str, meta=None):
    # Caller commits, so the event lands with the status change it describes
    ev = models.AuditEvent(event_type=event_type, room_id=room_id, user_id=user_id, meta=meta or {})
    db.add(ev)
    return ev


def release_claims(db: Session, booking_id: int):
    return db.query(models.SlotClaim).filter(
        models.SlotClaim.booking_id == booking_id
    ).delete(synchronize_session='fetch')


def active_bookings_between(db: Session, start_day, end_day, room_id=None):
    query = db.query(models.Booking).filter(
        models.Booking.date >= start_day,
        models.Booking.date <= end_day,
        models.Booking.status.in_(models.ACTIVE_STATUSES),
    )
    if room_id:
        query = query.filter(models.Booking.room_id == room_id)
    return query.order_by(models.Booking.date, models.Booking.start_time).all()

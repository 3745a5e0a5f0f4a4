from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, Time, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from .database import Base
from datetime import datetime

ROOM_TYPES = ('classroom', 'lab', 'seminar_hall', 'meeting_room')

PENDING = 'pending'
CONFIRMED = 'confirmed'
CHECKED_IN = 'checked_in'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
NO_SHOW = 'no_show'

# pending and confirmed share one lifecycle branch
RESERVED_STATUSES = (PENDING, CONFIRMED)
ACTIVE_STATUSES = (PENDING, CONFIRMED, CHECKED_IN)
TERMINAL_STATUSES = (COMPLETED, CANCELLED, NO_SHOW)


class Room(Base):
    __tablename__ = "rooms"
    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    building = Column(String, index=True)
    floor = Column(Integer, default=0)
    type = Column(String, default="classroom")
    capacity = Column(Integer, default=0)
    equipment = Column(String, default="")  # comma separated tags
    is_active = Column(Boolean, default=True)

    @property
    def equipment_tags(self):
        return [t.strip() for t in (self.equipment or '').split(',') if t.strip()]

    def __repr__(self):
        return f"<Room {self.room_id}>"


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String, ForeignKey("rooms.room_id"), index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    purpose = Column(Text, nullable=True)
    date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)  # exclusive
    attendees_count = Column(Integer, default=1)
    status = Column(String, index=True, default=CONFIRMED)
    qr_code = Column(String, unique=True, index=True)
    checked_in_at = Column(DateTime, nullable=True)
    checked_out_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    room = relationship("Room")
    claims = relationship("SlotClaim", back_populates="booking", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Booking {self.id} {self.room_id} {self.date} {self.start_time}-{self.end_time} {self.status}>"


class SlotClaim(Base):
    """One grid hour held by an active booking.

    The unique constraint is what makes conflicting concurrent inserts fail:
    overlapping bookings on the hourly grid always share an hour.
    """
    __tablename__ = "slot_claims"
    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), index=True, nullable=False)
    room_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    hour = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="claims")

    __table_args__ = (
        UniqueConstraint("room_id", "date", "hour", name="uq_slot_claim_room_date_hour"),
    )


class AuditEvent(Base):
    __tablename__ = "analytics_events"
    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String, index=True, nullable=False)  # auto_release, check_in, check_out
    room_id = Column(String, index=True)
    user_id = Column(String, index=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

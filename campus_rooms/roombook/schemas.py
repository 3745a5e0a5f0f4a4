from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional
from datetime import date, datetime, time


class RoomBase(BaseModel):
    room_id: str
    name: str
    building: str
    floor: int
    type: str
    capacity: int
    equipment: List[str]
    is_active: bool


class RoomOut(RoomBase):
    pass


class SlotOut(BaseModel):
    time: str      # "HH:MM"
    label: str     # "9:00 AM"
    available: bool


class QuickSlotOut(BaseModel):
    room: RoomOut
    start_time: str
    end_time: str


# Domain rules (grid, capacity, title) are enforced by lifecycle.create_booking
class BookingCreate(BaseModel):
    room_id: str
    title: str
    purpose: Optional[str] = None
    date: date
    start_time: time
    end_time: time
    attendees_count: int = 1


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: str
    user_id: str
    title: str
    purpose: Optional[str] = None
    date: date
    start_time: time
    end_time: time
    attendees_count: int
    status: str
    qr_code: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CheckinIn(BaseModel):
    code: str


class SweepResult(BaseModel):
    checked_at: datetime
    bookings_checked: int
    bookings_released: int


class CountItem(BaseModel):
    label: str
    count: int


class AnalyticsSummary(BaseModel):
    total_bookings: int
    total_rooms: int
    total_users: int
    checkin_rate: int
    bookings_by_day: List[CountItem]
    bookings_by_room: List[CountItem]
    bookings_by_hour: List[CountItem]
    status_breakdown: Dict[str, int]
    auto_releases: int


class ScheduleSlotOut(SlotOut):
    booking_id: Optional[int] = None
    title: Optional[str] = None


class ScheduleDayOut(BaseModel):
    date: date
    room_id: str
    room_name: str
    slots: List[ScheduleSlotOut]

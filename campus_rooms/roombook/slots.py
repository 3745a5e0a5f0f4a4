# Hourly slot calendar: every surface that needs availability goes through here.
import logging
from collections import defaultdict
from datetime import time, timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from . import config, crud
from .errors import ValidationError

logger = logging.getLogger(__name__)

MAX_SCHEDULE_DAYS = 31


def grid_hours():
    """Start hours of every slot in a day."""
    return range(config.SLOT_FIRST_HOUR, config.SLOT_LAST_HOUR)


def is_on_grid(t: time) -> bool:
    return (
        t.minute == 0 and t.second == 0 and t.microsecond == 0
        and config.SLOT_FIRST_HOUR <= t.hour <= config.SLOT_LAST_HOUR
    )


def hhmm(hour: int) -> str:
    return f"{hour:02d}:00"


def slot_label(hour: int) -> str:
    suffix = 'AM' if hour < 12 else 'PM'
    h12 = hour % 12 or 12
    return f"{h12}:00 {suffix}"


def parse_hour(value) -> int:
    if isinstance(value, time):
        return value.hour
    return int(str(value).split(':')[0])


def bookings_in_slot(hour: int, bookings):
    # Contained, not touching: a slot starting at a booking's end is free
    return [b for b in bookings if b.start_time.hour <= hour < b.end_time.hour]


def slot_taken(hour: int, bookings) -> bool:
    return bool(bookings_in_slot(hour, bookings))


def mark_slots(bookings) -> List[Dict]:
    return [
        {'time': hhmm(h), 'label': slot_label(h), 'available': not slot_taken(h, bookings)}
        for h in grid_hours()
    ]


def day_slots(db: Session, room_id: str, day) -> List[Dict]:
    # Unknown room -> empty calendar, not an error
    if crud.get_room_by_id(db, room_id) is None:
        return []
    return mark_slots(crud.active_bookings_for_day(db, room_id, day))


def available_end_times(slots: List[Dict], start) -> List[str]:
    """Grid boundaries reachable from ``start`` without crossing a taken slot."""
    if not isinstance(start, time):
        start = time.fromisoformat(str(start))
    if not is_on_grid(start):
        return []
    taken = {parse_hour(s['time']) for s in slots if not s['available']}
    known = {parse_hour(s['time']) for s in slots}
    out = []
    h = start.hour
    while h in known and h not in taken:
        out.append(hhmm(h + 1))
        h += 1
    return out


def next_hour_free_rooms(db: Session, now, limit: int = 6):
    """(room, start, end) for rooms free at the next full hour today."""
    next_hour = now.hour + 1
    if next_hour not in grid_hours():
        return []
    by_room = {}
    for b in crud.active_bookings_on(db, now.date()):
        by_room.setdefault(b.room_id, []).append(b)
    results = []
    for room in crud.rooms_filtered(db):
        if slot_taken(next_hour, by_room.get(room.room_id, [])):
            continue
        results.append((room, hhmm(next_hour), hhmm(next_hour + 1)))
        if len(results) >= limit:
            break
    logger.debug("quick book at %s: %d free rooms", now.isoformat(), len(results))
    return results


def schedule(db: Session, start_day, end_day, room_id=None) -> List[Dict]:
    """Slot grid of every active room for each day in ``[start_day, end_day]``."""
    if end_day < start_day:
        raise ValidationError('Schedule end date is before its start date')
    if (end_day - start_day).days + 1 > MAX_SCHEDULE_DAYS:
        raise ValidationError(f"Schedule range is limited to {MAX_SCHEDULE_DAYS} days")

    rooms = crud.rooms_filtered(db)
    if room_id:
        rooms = [r for r in rooms if r.room_id == room_id]
    by_key = defaultdict(list)
    for b in crud.active_bookings_between(db, start_day, end_day, room_id):
        by_key[(b.room_id, b.date)].append(b)

    out = []
    day = start_day
    while day <= end_day:
        for room in rooms:
            bookings = by_key[(room.room_id, day)]
            cells = []
            for h in grid_hours():
                hits = bookings_in_slot(h, bookings)
                cells.append({
                    'time': hhmm(h),
                    'label': slot_label(h),
                    'available': not hits,
                    'booking_id': hits[0].id if hits else None,
                    'title': hits[0].title if hits else None,
                })
            out.append({'date': day, 'room_id': room.room_id, 'room_name': room.name, 'slots': cells})
        day += timedelta(days=1)
    return out

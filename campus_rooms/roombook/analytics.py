from collections import defaultdict

from sqlalchemy.orm import Session

from . import models

DAYS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


def summary(db: Session):
    bookings = db.query(models.Booking).all()
    rooms = db.query(models.Room).all()
    names = {r.room_id: r.name for r in rooms}

    by_day = {d: 0 for d in DAYS}
    by_room = defaultdict(int)
    by_hour = defaultdict(int)
    statuses = defaultdict(int)
    users = set()
    checked_in = 0
    for b in bookings:
        # date.weekday() is Monday=0
        by_day[DAYS[(b.date.weekday() + 1) % 7]] += 1
        by_room[names.get(b.room_id, 'Unknown')] += 1
        by_hour[b.start_time.hour] += 1
        statuses[b.status] += 1
        users.add(b.user_id)
        if b.status in (models.CHECKED_IN, models.COMPLETED):
            checked_in += 1

    total = len(bookings)
    releases = db.query(models.AuditEvent).filter(models.AuditEvent.event_type == 'auto_release').count()
    top_rooms = sorted(by_room.items(), key=lambda kv: (-kv[1], kv[0]))[:6]
    return {
        'total_bookings': total,
        'total_rooms': len(rooms),
        'total_users': len(users),
        'checkin_rate': int(round(checked_in * 100 / total)) if total else 0,
        'bookings_by_day': [{'label': d, 'count': c} for d, c in by_day.items()],
        'bookings_by_room': [{'label': n, 'count': c} for n, c in top_rooms],
        'bookings_by_hour': [{'label': f"{h}:00", 'count': by_hour[h]} for h in sorted(by_hour)],
        'status_breakdown': dict(statuses),
        'auto_releases': releases,
    }

import csv, os
import logging
from .database import engine, SessionLocal, Base
from . import models

logger = logging.getLogger(__name__)

DEFAULT_ROOMS_CSV = 'roombook/rooms.csv'


def create_all(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def _truthy(value, default=True):
    if value is None or value == '':
        return default
    return str(value).strip().lower() in ['true', '1', 't', 'yes', 'y']


def room_from_row(row):
    room_type = (row.get('type') or 'classroom').strip()
    if room_type not in models.ROOM_TYPES:
        room_type = 'classroom'
    return dict(
        room_id=row.get('room_id'),
        name=row.get('name') or row.get('room_id'),
        building=row.get('building') or '',
        floor=int(row.get('floor') or 0),
        type=room_type,
        capacity=int(row.get('capacity') or 0),
        equipment=row.get('equipment') or '',
        is_active=_truthy(row.get('is_active')),
    )


def populate_from_csv(rooms_csv=DEFAULT_ROOMS_CSV, db=None):
    """Load the room catalog from CSV.

    Rooms are upserted by ``room_id``; bookings reference rooms and are
    never deleted, so rooms missing from the file are only deactivated.
    Returns the number of rooms read.
    """
    own_session = db is None
    if own_session:
        create_all()
        db = SessionLocal()
    try:
        if not os.path.exists(rooms_csv):
            logger.warning('Rooms CSV %s missing. Run scripts/generate_sample_data.py first.', rooms_csv)
            return 0
        existing = {r.room_id: r for r in db.query(models.Room).all()}
        seen = set()
        with open(rooms_csv, newline='', encoding='utf-8') as f:
            for row in csv.DictReader(f):
                values = room_from_row(row)
                if not values['room_id']:
                    continue
                seen.add(values['room_id'])
                room = existing.get(values['room_id'])
                if room is None:
                    db.add(models.Room(**values))
                else:
                    for k, v in values.items():
                        setattr(room, k, v)
        for room_id, room in existing.items():
            if room_id not in seen:
                room.is_active = False
        db.commit()
        logger.info('Loaded %d rooms from %s', len(seen), rooms_csv)
        return len(seen)
    finally:
        if own_session:
            db.close()

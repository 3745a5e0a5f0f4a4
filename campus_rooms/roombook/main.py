import logging
from datetime import date, datetime, time
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import analytics, auto_release, checkin, config, crud, lifecycle, schemas, slots
from .database import SessionLocal
from .errors import BookingError, TransientStoreError
from .init_db import DEFAULT_ROOMS_CSV, create_all, populate_from_csv

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title='Campus Room Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Database dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Identity comes from the auth provider in front of us; we only compare ids
def current_user(x_user_id: Optional[str] = Header(None)):
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail='Missing X-User-Id header')
    return x_user_id.strip()


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={'detail': exc.message, 'error': type(exc).__name__},
    )


@app.on_event('startup')
def startup_event():
    create_all()
    if config.AUTO_RELEASE_ENABLED:
        app.state.auto_release = auto_release.start_auto_release_thread(SessionLocal)
        logger.info('Auto-release sweep every %ss', config.AUTO_RELEASE_INTERVAL_SECONDS)


@app.on_event('shutdown')
def shutdown_event():
    sweeper = getattr(app.state, 'auto_release', None)
    if sweeper:
        sweeper[1].set()


def room_out(r):
    return {
        'room_id': r.room_id,
        'name': r.name,
        'building': r.building or '',
        'floor': r.floor or 0,
        'type': r.type,
        'capacity': r.capacity or 0,
        'equipment': r.equipment_tags,
        'is_active': bool(r.is_active),
    }


# Health check
@app.get('/health')
def health():
    return {'status': 'ok'}


# Admin CSV loader
@app.post('/admin/load_csv')
def admin_load_csv(rooms_path: str = DEFAULT_ROOMS_CSV, db: Session = Depends(get_db)):
    loaded = populate_from_csv(rooms_path, db=db)
    return {'loaded': loaded}


@app.post('/admin/auto-release', response_model=schemas.SweepResult)
def admin_auto_release(db: Session = Depends(get_db)):
    try:
        return auto_release.run_auto_release(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Auto-release sweep could not read candidates")
        raise TransientStoreError("Booking store is unavailable, please retry") from e


# List active rooms
@app.get('/rooms/all', response_model=List[schemas.RoomOut])
def rooms_all(q: str = None, type: str = None, min_capacity: int = None, db: Session = Depends(get_db)):
    return [room_out(r) for r in crud.rooms_filtered(db, q, type, min_capacity)]


# Rooms free for the next hour today
@app.get('/rooms/quick', response_model=List[schemas.QuickSlotOut])
def rooms_quick(limit: int = 6, db: Session = Depends(get_db)):
    out = []
    for r, start, end in slots.next_hour_free_rooms(db, datetime.now(), limit):
        out.append({'room': room_out(r), 'start_time': start, 'end_time': end})
    return out


@app.get('/rooms/{room_id}', response_model=schemas.RoomOut)
def room_detail(room_id: str, db: Session = Depends(get_db)):
    r = crud.get_room_by_id(db, room_id)
    if not r:
        raise HTTPException(status_code=404, detail='Room not found')
    return room_out(r)


@app.get('/rooms/{room_id}/slots', response_model=List[schemas.SlotOut])
def room_slots(room_id: str, day: date, db: Session = Depends(get_db)):
    return slots.day_slots(db, room_id, day)


@app.get('/rooms/{room_id}/end-times', response_model=List[str])
def room_end_times(room_id: str, day: date, start: time, db: Session = Depends(get_db)):
    return slots.available_end_times(slots.day_slots(db, room_id, day), start)


@app.post('/bookings', response_model=schemas.BookingOut, status_code=201)
def create_booking(payload: schemas.BookingCreate, user_id: str = Depends(current_user),
                   db: Session = Depends(get_db)):
    return lifecycle.create_booking(db, payload, user_id)


@app.get('/bookings/mine', response_model=List[schemas.BookingOut])
def my_bookings(user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return lifecycle.list_user_bookings(db, user_id)


@app.post('/bookings/{booking_id}/cancel', response_model=schemas.BookingOut)
def cancel_booking(booking_id: int, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return lifecycle.cancel_booking(db, booking_id, user_id)


@app.post('/bookings/{booking_id}/checkout', response_model=schemas.BookingOut)
def checkout(booking_id: int, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return checkin.check_out(db, booking_id, user_id)


@app.post('/checkin', response_model=schemas.BookingOut)
def check_in(payload: schemas.CheckinIn, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    return checkin.check_in(db, payload.code, user_id)


# Bookings grid across rooms (day, week or month view)
@app.get('/schedule', response_model=List[schemas.ScheduleDayOut])
def schedule(start: date, end: date = None, room_id: str = None, db: Session = Depends(get_db)):
    return slots.schedule(db, start, end or start, room_id)


# Summary analytics
@app.get('/analytics/summary', response_model=schemas.AnalyticsSummary)
def analytics_summary(db: Session = Depends(get_db)):
    return analytics.summary(db)


if __name__ == '__main__':
    uvicorn.run('roombook.main:app', host='0.0.0.0', port=8000, reload=True)

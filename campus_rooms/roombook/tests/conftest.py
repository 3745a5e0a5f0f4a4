from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from roombook import models, schemas
from roombook.database import Base
from roombook.main import app, get_db

DAY = date(2024, 5, 1)


@pytest.fixture
def engine():
    eng = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def rooms(db):
    db.add_all([
        models.Room(room_id='LAB-1', name='Lab-1', building='Science Block', floor=1,
                    type='lab', capacity=30, equipment='computers,projector'),
        models.Room(room_id='SEM-101', name='Seminar Hall 101', building='Main Building', floor=1,
                    type='seminar_hall', capacity=80, equipment='projector,wifi'),
        models.Room(room_id='MR-9', name='Meeting Room 9', building='Main Building', floor=3,
                    type='meeting_room', capacity=8, is_active=False),
    ])
    db.commit()


@pytest.fixture
def booking_request():
    def make(start, end, attendees=10, room_id='LAB-1', title='Study group', day=DAY, purpose=None):
        if isinstance(start, int):
            start = time(start)
        if isinstance(end, int):
            end = time(end)
        return schemas.BookingCreate(
            room_id=room_id, title=title, purpose=purpose, date=day,
            start_time=start, end_time=end, attendees_count=attendees,
        )
    return make


@pytest.fixture
def client(session_factory, rooms):
    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

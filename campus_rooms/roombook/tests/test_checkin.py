from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from roombook import checkin, crud, lifecycle, models, slots
from roombook.errors import AlreadyInStateError, InvalidTransitionError, NotFoundError, TransientStoreError


@pytest.fixture
def booking(db, rooms, booking_request):
    return lifecycle.create_booking(db, booking_request(10, 12), 'user-a')


def test_check_in_owner(db, booking):
    now = datetime(2024, 5, 1, 10, 5)
    b = checkin.check_in(db, booking.qr_code, 'user-a', now=now)

    assert b.status == models.CHECKED_IN
    assert b.checked_in_at == now
    events = db.query(models.AuditEvent).filter_by(event_type='check_in').all()
    assert len(events) == 1
    assert events[0].meta['booking_id'] == booking.id
    assert events[0].user_id == 'user-a'


def test_code_is_trimmed(db, booking):
    b = checkin.check_in(db, f"  {booking.qr_code} ", 'user-a')
    assert b.status == models.CHECKED_IN


def test_other_users_code_looks_like_unknown_code(db, booking):
    with pytest.raises(NotFoundError) as foreign:
        checkin.check_in(db, booking.qr_code, 'user-b')
    with pytest.raises(NotFoundError) as unknown:
        checkin.check_in(db, 'CRUO-NOPE-123', 'user-b')

    assert foreign.value.message == unknown.value.message == checkin.INVALID_CODE_MESSAGE
    db.refresh(booking)
    assert booking.status == models.CONFIRMED


def test_blank_code(db, booking):
    with pytest.raises(NotFoundError):
        checkin.check_in(db, '   ', 'user-a')


def test_second_check_in_is_reported(db, booking):
    checkin.check_in(db, booking.qr_code, 'user-a')
    with pytest.raises(AlreadyInStateError) as exc:
        checkin.check_in(db, booking.qr_code, 'user-a')

    assert exc.value.message == 'Already checked in'
    assert db.query(models.AuditEvent).filter_by(event_type='check_in').count() == 1


def test_lost_race_is_already_checked_in(db, booking, monkeypatch):
    # The other request flips the status between our read and our update
    def racing_transition(db_, b, target, **values):
        db_.query(models.Booking).filter_by(id=b.id).update({'status': models.CHECKED_IN})
        return False

    monkeypatch.setattr(checkin, 'transition', racing_transition)
    with pytest.raises(AlreadyInStateError):
        checkin.check_in(db, booking.qr_code, 'user-a')


def test_cancelled_booking_cannot_check_in(db, booking):
    lifecycle.cancel_booking(db, booking.id, 'user-a')
    with pytest.raises(InvalidTransitionError):
        checkin.check_in(db, booking.qr_code, 'user-a')


def test_check_out(db, booking):
    checkin.check_in(db, booking.qr_code, 'user-a')
    now = datetime(2024, 5, 1, 11, 40)
    b = checkin.check_out(db, booking.id, 'user-a', now=now)

    assert b.status == models.COMPLETED
    assert b.checked_out_at == now
    assert db.query(models.AuditEvent).filter_by(event_type='check_out').count() == 1
    # Completed bookings no longer hold the room
    assert all(s['available'] for s in slots.day_slots(db, 'LAB-1', booking.date))


def test_check_out_rules(db, booking):
    with pytest.raises(InvalidTransitionError):
        checkin.check_out(db, booking.id, 'user-a')

    checkin.check_in(db, booking.qr_code, 'user-a')
    with pytest.raises(NotFoundError):
        checkin.check_out(db, booking.id, 'user-b')

    checkin.check_out(db, booking.id, 'user-a')
    with pytest.raises(InvalidTransitionError):
        checkin.check_out(db, booking.id, 'user-a')


def test_store_outage_on_check_in_is_transient(db, booking, monkeypatch):
    def unavailable(*args, **kwargs):
        raise OperationalError('SELECT bookings', {}, Exception('could not connect'))

    monkeypatch.setattr(crud, 'get_booking_by_code', unavailable)
    with pytest.raises(TransientStoreError):
        checkin.check_in(db, booking.qr_code, 'user-a')
    db.refresh(booking)
    assert booking.status == models.CONFIRMED

from datetime import date, datetime

from roombook import analytics, auto_release, checkin, lifecycle


def test_summary_counts(db, rooms, booking_request):
    a = lifecycle.create_booking(db, booking_request(9, 10), 'user-a')
    lifecycle.create_booking(db, booking_request(10, 11), 'user-b')
    lifecycle.create_booking(db, booking_request(9, 10, room_id='SEM-101'), 'user-b')
    # Thursday
    lifecycle.create_booking(db, booking_request(14, 15, day=date(2024, 5, 2)), 'user-c')
    checkin.check_in(db, a.qr_code, 'user-a')
    auto_release.run_auto_release(db, now=datetime(2024, 5, 1, 10, 30))

    s = analytics.summary(db)

    assert s['total_bookings'] == 4
    assert s['total_rooms'] == 3
    assert s['total_users'] == 3
    assert s['checkin_rate'] == 25
    assert s['status_breakdown'] == {'checked_in': 1, 'no_show': 2, 'confirmed': 1}
    assert s['auto_releases'] == 2
    by_day = {d['label']: d['count'] for d in s['bookings_by_day']}
    assert by_day['Wed'] == 3
    assert by_day['Thu'] == 1
    assert s['bookings_by_room'][0] == {'label': 'Lab-1', 'count': 3}
    assert s['bookings_by_hour'] == [
        {'label': '9:00', 'count': 2}, {'label': '10:00', 'count': 1}, {'label': '14:00', 'count': 1},
    ]


def test_empty_summary(db):
    s = analytics.summary(db)
    assert s['total_bookings'] == 0
    assert s['checkin_rate'] == 0
    assert len(s['bookings_by_day']) == 7

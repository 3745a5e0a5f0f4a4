import csv

import requests

from ops import auto_release_runner
from scripts.generate_sample_data import write_structured


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body or {}

    def json(self):
        return self._body


def test_trigger_sweep_ok(monkeypatch):
    calls = []

    def fake_post(url, timeout):
        calls.append(url)
        return FakeResponse(200, {'bookings_checked': 3, 'bookings_released': 1})

    monkeypatch.setattr(auto_release_runner.requests, 'post', fake_post)
    run = auto_release_runner.trigger_sweep('http://api:8000/')

    assert calls == ['http://api:8000/admin/auto-release']
    assert (run.status, run.bookings_checked, run.bookings_released) == ('ok', 3, 1)


def test_trigger_sweep_errors(monkeypatch):
    monkeypatch.setattr(auto_release_runner.requests, 'post', lambda url, timeout: FakeResponse(500))
    assert auto_release_runner.trigger_sweep('http://api').error == 'HTTP 500'

    def down(url, timeout):
        raise requests.ConnectionError('refused')

    monkeypatch.setattr(auto_release_runner.requests, 'post', down)
    run = auto_release_runner.trigger_sweep('http://api')
    assert run.status == 'error'
    assert 'refused' in run.error


def test_run_forever_records_each_run(monkeypatch, tmp_path):
    monkeypatch.setattr(auto_release_runner.requests, 'post',
                        lambda url, timeout: FakeResponse(200, {'bookings_checked': 0, 'bookings_released': 0}))
    monkeypatch.setattr(auto_release_runner.time, 'sleep', lambda s: None)
    path = tmp_path / 'runs.csv'

    assert auto_release_runner.run_forever('http://api', 1, csv_path=path, max_runs=2) == 2

    with path.open() as f:
        rows = list(csv.DictReader(f))
    assert [r['status'] for r in rows] == ['ok', 'ok']


def test_generated_rooms_load(db, tmp_path):
    from roombook import models
    from roombook.init_db import populate_from_csv

    out = tmp_path / 'rooms.csv'
    n = write_structured(str(out), seed=42)
    assert populate_from_csv(str(out), db=db) == n

    types = {t for (t,) in db.query(models.Room.type).distinct()}
    assert types == set(models.ROOM_TYPES)
    assert db.query(models.Room).filter_by(is_active=False).count() == 1

"""External trigger for the auto-release sweep.

Calls ``POST /admin/auto-release`` on a fixed cadence and appends every run
to ``data/auto_release_runs.csv``. Run it next to the API when the in-process
sweep thread is disabled (``AUTO_RELEASE_ENABLED=false``)::

    python ops/auto_release_runner.py --api http://127.0.0.1:8000 --every 300
"""
from __future__ import annotations
import argparse
import csv
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
CSV_PATH = DATA_DIR / "auto_release_runs.csv"


@dataclass
class SweepRun:
    timestamp: datetime
    status: str            # "ok" or "error"
    latency_ms: Optional[float]
    bookings_checked: Optional[int]
    bookings_released: Optional[int]
    error: Optional[str]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def trigger_sweep(api_base: str, timeout: float = 10.0) -> SweepRun:
    url = f"{api_base.rstrip('/')}/admin/auto-release"
    t0 = time.perf_counter()
    try:
        r = requests.post(url, timeout=timeout)
        latency_ms = round((time.perf_counter() - t0) * 1000.0, 2)
        if not r.ok:
            return SweepRun(_now_utc(), "error", latency_ms, None, None, f"HTTP {r.status_code}")
        body = r.json()
        return SweepRun(
            timestamp=_now_utc(),
            status="ok",
            latency_ms=latency_ms,
            bookings_checked=body.get("bookings_checked"),
            bookings_released=body.get("bookings_released"),
            error=None,
        )
    except requests.RequestException as e:
        latency_ms = round((time.perf_counter() - t0) * 1000.0, 2)
        return SweepRun(_now_utc(), "error", latency_ms, None, None, str(e))


def append_run(result: SweepRun, csv_path: Path = CSV_PATH) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not csv_path.exists()
    with csv_path.open("a", newline="") as f:
        w = csv.writer(f)
        if is_new:
            w.writerow(["timestamp_iso", "status", "latency_ms", "bookings_checked", "bookings_released", "error"])
        w.writerow([
            result.timestamp.isoformat(),
            result.status,
            "" if result.latency_ms is None else result.latency_ms,
            "" if result.bookings_checked is None else result.bookings_checked,
            "" if result.bookings_released is None else result.bookings_released,
            result.error or "",
        ])


def run_forever(api_base: str, every: float, csv_path: Path = CSV_PATH, max_runs: Optional[int] = None):
    runs = 0
    while max_runs is None or runs < max_runs:
        result = trigger_sweep(api_base)
        append_run(result, csv_path)
        if result.status == "ok":
            logger.info("sweep released %s of %s", result.bookings_released, result.bookings_checked)
        else:
            # Missed runs are retried by the next tick
            logger.warning("sweep failed: %s", result.error)
        runs += 1
        if max_runs is None or runs < max_runs:
            time.sleep(every)
    return runs


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--api", default="http://127.0.0.1:8000")
    p.add_argument("--every", type=float, default=300.0, help="Seconds between sweeps")
    args = p.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    run_forever(args.api, args.every)

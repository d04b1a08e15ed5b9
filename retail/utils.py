from __future__ import annotations

import time
import uuid
from datetime import datetime, date, timezone
from typing import Optional


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def now_ts() -> float:
    return time.time()


def current_month(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()[:7]


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    # Accepts both "YYYY-MM-DD" and full ISO datetimes.
    return date.fromisoformat(str(value)[:10])


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0

from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from sportledger.config import TIMEZONE

_MONTHS_IT = [
    "Gennaio", "Febbraio", "Marzo", "Aprile", "Maggio", "Giugno",
    "Luglio", "Agosto", "Settembre", "Ottobre", "Novembre", "Dicembre",
]


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_bounds(d: date) -> tuple[date, date]:
    first = d.replace(day=1)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1, day=1)
    else:
        next_month = first.replace(month=first.month + 1, day=1)
    last = next_month - timedelta(days=1)
    return first, last


def shift_month(d: date, months: int) -> date:
    """First day of the month `months` away from d."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def parse_iso_date(s) -> Optional[date]:
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    s = str(s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def format_it_date(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def italian_month_label(d: date) -> str:
    return f"{_MONTHS_IT[d.month - 1]} {d.year}"


def now_utc_iso() -> str:
    return datetime.now(pytz.UTC).isoformat()


def today_local() -> date:
    return datetime.now(pytz.timezone(TIMEZONE)).date()

"""Turn mapped spreadsheet rows into validated donation candidates."""

from __future__ import annotations

import math
import numbers
import re
import uuid
import warnings
from datetime import date, datetime
from typing import Any, Iterable, Mapping

import pandas as pd

from .fields import map_fields
from .models import Donation, DonationCandidate


DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%m-%Y",
    "%b %d, %Y",
    "%d %b %Y",
)

MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

_LEADING_NUMBER = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")


def new_id() -> str:
    return uuid.uuid4().hex


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def _clean_text(value: Any) -> str:
    if is_missing(value):
        return ""
    return str(value).strip()


def _clean_optional(value: Any) -> str | None:
    return _clean_text(value) or None


def parse_amount(value: Any) -> float:
    """Read a gift amount, returning 0 when nothing numeric can be found."""

    if isinstance(value, bool):
        return 0.0
    if isinstance(value, numbers.Real):
        if math.isnan(value):
            return 0.0
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        match = _LEADING_NUMBER.match(cleaned)
        if match is None:
            return 0.0
        return float(match.group(0))
    return 0.0


def _to_naive_datetime(value: datetime) -> datetime:
    if isinstance(value, pd.Timestamp):
        if value.tzinfo is not None:
            value = value.tz_localize(None)
        return value.to_pydatetime()
    return value.replace(tzinfo=None)


def parse_date(value: Any) -> datetime | None:
    """Parse a date cell using the known layouts, then a lenient fallback."""

    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return _to_naive_datetime(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if not text:
        return None

    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            continue

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return _to_naive_datetime(parsed)


def parse_month(value: Any) -> int | None:
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        if math.isnan(value):
            return None
        month = int(value)
        return month if 1 <= month <= 12 else None

    text = str(value).strip().lower()
    if not text:
        return None
    if text.isdigit():
        month = int(text)
        return month if 1 <= month <= 12 else None

    for index, name in enumerate(MONTH_NAMES):
        if name.startswith(text):
            return index + 1
    return None


def resolve_date(
    date_value: Any,
    month_value: Any = None,
    today: datetime | None = None,
) -> datetime:
    """Explicit date first, then day one of the named month this year, then now."""

    anchor = today or datetime.now()

    parsed = parse_date(date_value)
    if parsed is not None:
        return parsed

    month = parse_month(month_value)
    if month is not None:
        return datetime(anchor.year, month, 1)

    return anchor


def split_full_name(value: Any) -> tuple[str, str]:
    parts = _clean_text(value).split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def normalize_row(
    mapped: Mapping[str, Any],
    today: datetime | None = None,
) -> DonationCandidate:
    first_name = _clean_text(mapped.get("first_name"))
    last_name = _clean_text(mapped.get("last_name"))
    if not first_name and not last_name:
        first_name, last_name = split_full_name(mapped.get("full_name"))

    donation = Donation(
        id=new_id(),
        amount=parse_amount(mapped.get("amount")),
        date=resolve_date(mapped.get("date"), mapped.get("month"), today=today),
    )
    return DonationCandidate(
        first_name=first_name,
        last_name=last_name,
        donation=donation,
        email=_clean_optional(mapped.get("email")),
        phone=_clean_optional(mapped.get("phone")),
    )


def normalize_rows(
    rows: Iterable[Mapping[Any, Any]],
    today: datetime | None = None,
) -> list[DonationCandidate]:
    """Map and normalize raw rows, silently dropping the ones that fail validation."""

    candidates = (normalize_row(map_fields(row), today=today) for row in rows)
    return [candidate for candidate in candidates if candidate.is_valid]

"""Map loosely named spreadsheet columns onto canonical donor fields."""

from __future__ import annotations

import re
from typing import Any, Mapping


FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "first_name": ("first_name", "firstname", "fname", "first", "given_name"),
    "last_name": ("last_name", "lastname", "lname", "last", "surname", "family_name"),
    "full_name": ("name", "full_name", "donor_name", "donor"),
    "amount": ("amount", "donation", "gift", "contribution", "value", "total"),
    "date": ("date", "donation_date", "gift_date", "received_date", "timestamp"),
    "month": ("month", "donation_month", "gift_month"),
    "email": ("email", "email_address", "e_mail"),
    "phone": ("phone", "phone_number", "telephone", "mobile"),
}


def normalize_header(name: Any) -> str:
    return re.sub(r"\s+", "_", str(name).strip().lower())


def map_fields(row: Mapping[Any, Any]) -> dict[str, Any]:
    """Return the row keyed by canonical field names.

    Headers are compared after lower-casing and turning whitespace runs into
    underscores; when two headers collapse to the same name the later column
    wins. The first alias present in the row wins. Fields without a matching
    column are left out.
    """

    normalized_row: dict[str, Any] = {}
    for header, value in row.items():
        normalized_row[normalize_header(header)] = value

    mapped: dict[str, Any] = {}
    for field_name, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            if alias in normalized_row:
                mapped[field_name] = normalized_row[alias]
                break
    return mapped

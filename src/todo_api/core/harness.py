"""Validation rules and synthetic datasets served by the testing harness."""

from __future__ import annotations

import base64
import binascii
import math
import random
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from todo_api.core.models import ValidationStrictness

STRICT_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NORMAL_EMAIL = re.compile(r"\S+@\S+\.\S+")
PHONE = re.compile(r"^\+?[\d\s\-\(\)]{10,15}$")
NAME_INVALID_CHARS = re.compile(r"[^a-zA-Z\s\-']")

DATASET_CATEGORIES = ("Work", "Personal", "Shopping", "Health")
CURSOR_STEP_MS = 60_000
# Cursor pages hold at most 50 records, one minute apart.
CURSOR_SPAN_MS = 50 * CURSOR_STEP_MS

PAGINATION_ISSUES = {
    "none": "Normal pagination behavior",
    "duplicates": "Some records may appear on multiple pages",
    "missing_records": "Some records may be skipped between pages",
    "changing_order": "Sort order changes between requests",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def validate_profile(strictness: ValidationStrictness, data: Mapping[str, Any]) -> list[str]:
    """Return the error messages for a user profile under ``strictness``."""
    name = data.get("name")
    email = data.get("email")
    age = data.get("age")
    phone = data.get("phone")
    bio = data.get("bio")
    errors = []

    if strictness is ValidationStrictness.STRICT:
        if not isinstance(name, str) or not 2 <= len(name) <= 50:
            errors.append("Name must be between 2-50 characters")
        if not isinstance(email, str) or not STRICT_EMAIL.match(email):
            errors.append("Valid email address is required")
        if not _is_number(age) or not 13 <= age <= 120:
            errors.append("Age must be between 13-120")
        if phone and (not isinstance(phone, str) or not PHONE.match(phone)):
            errors.append("Phone number format is invalid")
        if isinstance(bio, str) and len(bio) > 500:
            errors.append("Bio cannot exceed 500 characters")
        if isinstance(name, str) and name and NAME_INVALID_CHARS.search(name):
            errors.append("Name contains invalid characters")
    elif strictness is ValidationStrictness.LOOSE:
        if not name:
            errors.append("Name is required")
        if not email:
            errors.append("Email is required")
    else:
        if not isinstance(name, str) or not 1 <= len(name) <= 100:
            errors.append("Name is required and must be under 100 characters")
        if not isinstance(email, str) or not NORMAL_EMAIL.search(email):
            errors.append("Valid email is required")
        if age is not None and (not _is_number(age) or not 0 <= age <= 150):
            errors.append("Age must be between 0-150")

    return errors


def _is_date_string(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


TYPE_CHECKS = (
    ("stringField", lambda v: isinstance(v, str), "stringField must be a string"),
    (
        "numberField",
        lambda v: _is_number(v) and not (isinstance(v, float) and math.isnan(v)),
        "numberField must be a valid number",
    ),
    ("booleanField", lambda v: isinstance(v, bool), "booleanField must be a boolean"),
    ("dateField", _is_date_string, "dateField must be a valid date string"),
    ("arrayField", lambda v: isinstance(v, list), "arrayField must be an array"),
    ("objectField", lambda v: isinstance(v, dict), "objectField must be an object"),
)


def validate_data_types(data: Mapping[str, Any]) -> list[str]:
    errors = []
    for field, check, message in TYPE_CHECKS:
        if field in data and not check(data[field]):
            errors.append(message)
    return errors


def json_type_name(data: Mapping[str, Any], field: str) -> str:
    """Describe a JSON value's type the way a browser client reports it."""
    if field not in data:
        return "undefined"
    value = data[field]
    if value is None or isinstance(value, dict):
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def large_dataset_page(
    page: int, limit: int, total_records: int, rng: random.Random | None = None
) -> list[dict]:
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    offset = (page - 1) * limit
    records = []
    for i in range(max(0, min(limit, total_records - offset))):
        record_id = offset + i + 1
        records.append(
            {
                "id": record_id,
                "title": f"Test Record {record_id}",
                "description": f"This is test record number {record_id} of {total_records}",
                "created_at": _iso(now - timedelta(days=rng.random() * 365)),
                "category": DATASET_CATEGORIES[record_id % len(DATASET_CATEGORIES)],
            }
        )
    return records


def encode_cursor(timestamp_ms: int) -> str:
    return base64.b64encode(str(timestamp_ms).encode()).decode()


def decode_cursor(cursor: str) -> int:
    """Decode a base64 millisecond cursor; raises ``ValueError`` when malformed.

    The timestamp, and every record a page can step to from it, must be a
    representable datetime.
    """
    try:
        timestamp_ms = int(base64.b64decode(cursor, validate=True).decode())
        for edge in (timestamp_ms - CURSOR_SPAN_MS, timestamp_ms + CURSOR_SPAN_MS):
            datetime.fromtimestamp(edge / 1000, tz=timezone.utc)
    except (binascii.Error, UnicodeDecodeError, ValueError, OverflowError, OSError) as e:
        raise ValueError("Invalid cursor format") from e
    return timestamp_ms


def cursor_page(cursor_ms: int, limit: int, direction: str) -> list[dict]:
    step = -CURSOR_STEP_MS if direction == "next" else CURSOR_STEP_MS
    records = []
    for i in range(limit):
        timestamp = cursor_ms + step * (i + 1)
        record_id = abs(timestamp // 1000)
        created = _iso(datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc))
        records.append(
            {
                "id": record_id,
                "title": f"Cursor Record {record_id}",
                "timestamp": timestamp,
                "created_at": created,
                "data": f"Record created at {created}",
            }
        )
    return records


def inconsistent_page(page: int, limit: int, issue_type: str, total_records: int = 50) -> list[dict]:
    now = datetime.now(timezone.utc)
    base = [
        {
            "id": i,
            "title": f"Record {i}",
            "order": i,
            "created_at": _iso(now - timedelta(minutes=total_records - i)),
        }
        for i in range(1, total_records + 1)
    ]
    offset = (page - 1) * limit

    if issue_type == "duplicates":
        data = base[offset : offset + limit]
        if page > 1 and data:
            data.insert(0, base[offset - 1])
        return data
    if issue_type == "missing_records":
        shifted = offset + page // 2
        return base[shifted : shifted + limit]
    if issue_type == "changing_order":
        ordered = list(reversed(base)) if page % 2 == 0 else base
        return ordered[offset : offset + limit]
    return base[offset : offset + limit]

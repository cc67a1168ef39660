from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any


ELLIPSIS = "..."
DATE_PLACEHOLDER = "N/A"


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, dict)):
        return ""
    return str(value)


def as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def as_mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def as_records(value: Any) -> list[dict[str, Any]]:
    """List entries that are JSON objects; anything else is skipped."""
    return [dict(row) for row in as_list(value) if isinstance(row, Mapping)]


def as_texts(value: Any) -> tuple[str, ...]:
    return tuple(as_text(item) for item in as_list(value) if item is not None)


def as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def as_optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return as_int(value)


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def format_count(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return as_text(value)


def default_label(value: Any, table: Mapping[str, Any], fallback_key: str) -> Any:
    if isinstance(value, str) and value in table:
        return table[value]
    return table[fallback_key]


def truncate(text: Any, max_len: int) -> str:
    value = as_text(text)
    if len(value) <= max_len:
        return value
    return value[:max_len] + ELLIPSIS


def percent(fraction: Any) -> int:
    # half-up, not round()
    return int(math.floor(as_float(fraction) * 100 + 0.5))


def _parse_timestamp(raw: str) -> datetime | None:
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_short_date(iso_value: Any) -> str:
    raw = as_text(iso_value).strip()
    if not raw:
        return DATE_PLACEHOLDER
    parsed = _parse_timestamp(raw)
    if parsed is None:
        return raw
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_date(iso_value: Any) -> str:
    raw = as_text(iso_value).strip()
    if not raw:
        return DATE_PLACEHOLDER
    parsed = _parse_timestamp(raw)
    if parsed is None:
        return raw
    return (
        f"{parsed.strftime('%A, %B')} {parsed.day}, {parsed.year} "
        f"at {parsed.strftime('%I:%M %p')}"
    )

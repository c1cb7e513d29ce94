"""Safe lookups over the vendor's XML-derived JSON.

The vendor serialises repeated XML elements as a list and single ones as a bare
object, so any node may arrive in either shape. Lookups here never unwrap lists;
callers decide where a list-or-single boundary sits and collapse it with
``normalize_to_list`` right after the lookup.
"""
from __future__ import annotations

import math
from typing import Any, Iterable


def get_at_path(node: Any, keys: Iterable[str]) -> Any | None:
    current = node
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def normalize_to_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def first_text(value: Any) -> str:
    if isinstance(value, list):
        return as_text(value[0]) if value else ""
    return as_text(value)


def first_item(value: Any) -> Any | None:
    items = normalize_to_list(value)
    return items[0] if items else None

"""Tolerant value coercion for load boundaries.

Older drafts and older persisted entities may lack sections or carry values
of the wrong type. These helpers never raise: they return the given default.
"""

from __future__ import annotations

from typing import Any


def as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def as_opt_str(value: Any) -> str | None:
    s = as_str(value)
    return s or None


def as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return default
    return default


def as_opt_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return None
    return None


def as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def as_opt_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items()}
    return {}


def as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def as_str_list(value: Any) -> list[str]:
    """List of non-empty strings, duplicates removed, order kept."""
    out: list[str] = []
    for item in as_list(value):
        s = as_str(item).strip()
        if s and s not in out:
            out.append(s)
    return out


def as_str_map(value: Any) -> dict[str, str]:
    return {k: as_str(v) for k, v in as_dict(value).items()}


def as_count_map(value: Any) -> dict[str, int]:
    """Mapping of name -> non-negative count; zero entries are dropped."""
    out: dict[str, int] = {}
    for k, v in as_dict(value).items():
        n = as_int(v)
        if n > 0:
            out[k] = n
    return out


def as_number_map(value: Any) -> dict[str, float]:
    out: dict[str, float] = {}
    for k, v in as_dict(value).items():
        n = as_opt_float(v)
        if n is not None:
            out[k] = n
    return out

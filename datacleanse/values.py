"""Helpers for working with individual cell values.

A cell holds one of ``str``, ``int``/``float``, ``bool`` or ``None``; the
Python type is the tag. Parsers only ever produce ``str`` or ``None``.
"""
import json
import math
import re
from typing import Any, Union

Value = Union[str, int, float, bool, None]

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def to_text(value: Any) -> str:
    """String form of a cell, used for comparisons and export."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def is_null(value: Any) -> bool:
    if value is None:
        return True
    return to_text(value).strip() == ""


def is_number(value: Any) -> bool:
    """True when the value reads as a finite decimal number."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    text = to_text(value).strip()
    if not _DECIMAL_RE.fullmatch(text):
        return False
    return math.isfinite(float(text))

"""
Permissive value coercion for duck-typed source records.

Responsibility:
    Source collaborators hand back numbers as ``int``, ``float``, ``Decimal``,
    numeric strings, blank strings, ``None`` or nothing at all, and booleans as
    ``bool`` or ``"TRUE"``/``"false"`` strings.  These helpers normalize such
    values at the boundary so that the engines only ever see ``Decimal`` and
    ``bool``.

Architecture position:
    Kernel > Domain -- pure functions, ZERO I/O.

Invariants enforced:
    - Never raises on bad data: unparseable numerics become ``Decimal("0")``
      (or ``None`` for the optional variants).
    - Non-finite values (NaN, Infinity) are treated as unparseable.
    - ``float`` inputs are converted through ``str()`` so that ``0.1`` becomes
      ``Decimal("0.1")`` rather than its binary expansion.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Longest integer part to_int accepts
_MAX_INT_DIGITS = 18

_TRUE_STRINGS = frozenset({"true"})
_FALSE_STRINGS = frozenset({"false"})


def to_optional_decimal(value: Any) -> Decimal | None:
    """Parse ``value`` as a Decimal, returning None when it is absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    if not parsed.is_finite():
        return None
    return parsed


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Parse ``value`` as a Decimal, falling back to ``default`` (zero)."""
    parsed = to_optional_decimal(value)
    return default if parsed is None else parsed


def to_int(value: Any, default: int = 0) -> int:
    """
    Parse ``value`` as an integer (truncating), falling back to ``default``.

    Values with more than ``_MAX_INT_DIGITS`` integer digits (``"1e999999999"``)
    are treated as unparseable.
    """
    parsed = to_optional_decimal(value)
    if parsed is None or parsed.adjusted() >= _MAX_INT_DIGITS:
        return default
    return int(parsed)


def to_optional_bool(value: Any) -> bool | None:
    """
    Parse a flag that may arrive as a bool or a string.

    ``True``/``False`` pass through; ``"true"``/``"false"`` are accepted in any
    case.  Anything else (``None``, numbers, other strings) is ``None`` --
    "not stated".
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def to_bool(value: Any, default: bool = False) -> bool:
    """Parse a flag, falling back to ``default`` when it is not stated."""
    parsed = to_optional_bool(value)
    return default if parsed is None else parsed


def to_text(value: Any) -> str:
    """Render an identifier or label as a stripped string ("" for None)."""
    if value is None:
        return ""
    return str(value).strip()

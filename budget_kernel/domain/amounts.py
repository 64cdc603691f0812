"""
Amounts -- exact Decimal arithmetic for report accumulation.

Responsibility:
    Addition and proportional-share helpers used by the allocation,
    aggregation and hierarchy engines.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Sums are computed in a widened decimal context, so addition of any
      realistic monetary values is exact.  Exact addition is associative and
      commutative, which makes accumulation order-independent.
    - Proportional shares are computed as ``part * pool / whole``; the
      multiplication is exact and only the final division rounds (at the
      default 28-digit precision).  The same inputs always yield the same
      share regardless of the order documents are processed in.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import MAX_EMAX, MIN_EMIN, Context, Decimal

from budget_kernel.domain.coercion import ZERO

_EXACT = Context(prec=400, Emax=MAX_EMAX, Emin=MIN_EMIN)
_SHARE = Context(prec=28, Emax=MAX_EMAX, Emin=MIN_EMIN)


def add_amounts(*values: Decimal) -> Decimal:
    """Exact sum of ``values``."""
    return sum_amounts(values)


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of an iterable of Decimals (``ZERO`` when empty)."""
    total = ZERO
    for value in values:
        total = _EXACT.add(total, value)
    return total


def subtract_amounts(minuend: Decimal, subtrahend: Decimal) -> Decimal:
    return _EXACT.subtract(minuend, subtrahend)


def multiply_amounts(left: Decimal, right: Decimal) -> Decimal:
    return _EXACT.multiply(left, right)


def proportional_share(part: Decimal, whole: Decimal, pool: Decimal) -> Decimal:
    """
    ``part / whole * pool``; zero when ``whole`` is not positive.

    >>> proportional_share(Decimal("60"), Decimal("100"), Decimal("10"))
    Decimal('6')
    """
    if whole <= ZERO:
        return ZERO
    return _SHARE.divide(_EXACT.multiply(part, pool), whole)


def divide_amount(amount: Decimal, divisor: int | Decimal) -> Decimal:
    """``amount / divisor``; zero when ``divisor`` is not positive."""
    if divisor <= 0:
        return ZERO
    return _SHARE.divide(amount, Decimal(divisor))


def percent_of(base: Decimal, percent: Decimal) -> Decimal:
    """``base * percent / 100`` (exact)."""
    return _EXACT.divide(_EXACT.multiply(base, percent), Decimal(100))

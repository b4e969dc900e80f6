"""Day-count conventions: year fractions between two dates."""

from datetime import date
from decimal import Decimal

from .errors import EvalError, EvalErrorKind


def _actual(start: date, end: date) -> Decimal:
    return Decimal((end - start).days)


def _thirty_360(start: date, end: date) -> Decimal:
    """30/360 bond basis (ISDA 2006 4.16(f))."""
    d1 = min(start.day, 30)
    d2 = end.day
    if d2 == 31 and d1 == 30:
        d2 = 30
    days = 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)
    return Decimal(days) / Decimal(360)


CONVENTIONS = {
    "act/365": lambda s, e: _actual(s, e) / Decimal(365),
    "act/365f": lambda s, e: _actual(s, e) / Decimal(365),
    "act/360": lambda s, e: _actual(s, e) / Decimal(360),
    "30/360": _thirty_360,
}


def year_fraction(convention: str, start: date, end: date) -> Decimal:
    """Year fraction under a convention. Runs in the caller's decimal context."""
    func = CONVENTIONS.get(convention.lower())
    if func is None:
        raise EvalError(EvalErrorKind.UNKNOWN_CONVENTION, convention)
    return func(start, end)

"""Temporal guards, evaluated against a reference date rather than the clock."""

from datetime import date, datetime

from . import ast
from .config import get_settings
from .expressions import concrete_date


def holds(guard: ast.Guard, at: date) -> bool:
    """Whether a guard is satisfied at a reference date. Before/After are strict."""
    match guard:
        case ast.Anytime():
            return True
        case ast.Before(at=ref):
            return at < concrete_date(ref)
        case ast.After(at=ref):
            return at > concrete_date(ref)
    raise TypeError(f"unknown guard: {type(guard)}")


def parse_date(text: str, fmt: str | None = None) -> date:
    """Parse a contract date. Defaults to the configured format (dd/MM/yyyy).

    ISO dates (2015-07-01) are always accepted.
    """
    if fmt is None:
        fmt = get_settings().date_format
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError:
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise ValueError(f"invalid date {text!r}, expected format {fmt}") from None


def as_date_ref(value: date | str) -> ast.DateRef:
    """Dates pass through, 'start'/'end' stay symbolic, other strings are parsed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value in ast.PERIOD_BOUNDS:
        return value
    return parse_date(value)

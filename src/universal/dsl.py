"""Python authoring surface for contracts.

Builder functions return immutable trees; nothing is mutated after it is built.

Example:
    from universal.dsl import *

    bank, corp = party("highStreetBank"), party("acmeCorp")

    contract = arrange(
        (bank | corp).may(
            given_that("proceed", after("01/07/2015"),
                bank.gives(corp, libor(notional, "01/04/2015", "01/07/2015"), USD),
                corp.gives(bank, interest(notional, "act/365", coupon, "01/04/2015", "01/07/2015"), USD),
            ),
        ),
        corp.may(anytime("cancel", corp.gives(bank, 10 * K, USD))),
    )
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from . import ast
from .ast import Currency
from .rollout import check_closed, expand
from .schedule import Frequency
from .temporal import as_date_ref, parse_date

K = Decimal(1_000)
M = Decimal(1_000_000)

START = "start"
END = "end"

USD = Currency.USD
EUR = Currency.EUR
GBP = Currency.GBP
JPY = Currency.JPY
CHF = Currency.CHF

zero = ast.Zero()


@dataclass(frozen=True)
class Choice:
    """An action not yet offered to anyone. Party.may() binds the actors."""

    label: str
    guard: ast.Guard
    effects: tuple[ast.Obligation, ...]
    continuation: ast.Arrangement

    def bind(self, actors: ast.Party | ast.AnyOf) -> ast.Action:
        return ast.Action(
            label=self.label,
            actors=actors,
            guard=self.guard,
            effects=self.effects,
            continuation=self.continuation,
        )


def party(name: str) -> ast.Party:
    return ast.Party(name=name)


def after(at: date | str) -> ast.After:
    return ast.After(at=as_date_ref(at))


def before(at: date | str) -> ast.Before:
    return ast.Before(at=as_date_ref(at))


def given_that(
    label: str,
    guard: ast.Guard,
    *effects: ast.Obligation,
    then: ast.Arrangement | None = None,
) -> Choice:
    return Choice(label, guard, tuple(effects), then if then is not None else zero)


def anytime(label: str, *effects: ast.Obligation, then: ast.Arrangement | None = None) -> Choice:
    return given_that(label, ast.Anytime(), *effects, then=then)


def actions(*groups: ast.Action | tuple[ast.Action, ...]) -> ast.Actions:
    """Collect the actions offered by one or more ``may`` groups."""
    flat: list[ast.Action] = []
    for group in groups:
        if isinstance(group, ast.Action):
            flat.append(group)
        else:
            flat.extend(group)
    return ast.Actions(actions=tuple(flat))


def arrange(*groups: Any) -> ast.Arrangement:
    """Top-level contract.

    Accepts either a single finished arrangement (e.g. a roll_out) or action
    groups. Rejects rollout-only constructs left outside any rollout.
    """
    if len(groups) == 1 and isinstance(groups[0], (ast.Zero, ast.Actions)):
        tree = groups[0]
    else:
        tree = actions(*groups)
    check_closed(tree)
    return tree


def roll_out(
    start: date | str,
    end: date | str,
    frequency: Frequency | str,
    body: ast.Arrangement,
    variables: dict[str, Any] | None = None,
) -> ast.Arrangement:
    """Repeat ``body`` every period between start and end."""
    schedule = ast.RolloutSchedule(
        start=start if isinstance(start, date) else parse_date(start),
        end=end if isinstance(end, date) else parse_date(end),
        frequency=Frequency(frequency),
        variables={name: ast.as_expr(v) for name, v in (variables or {}).items()},
    )
    return expand(schedule, body)


def next_period(**assignments: Any) -> ast.Next:
    """Continue with the next rollout period, rebinding the given variables."""
    return ast.Next(assignments={name: ast.as_expr(v) for name, v in assignments.items()})


def var(name: str) -> ast.Var:
    """Reference a rollout state variable (``vars.<name>``)."""
    return ast.Var(name=name)


def const(value: Any) -> ast.Const:
    return ast.as_expr(value)


# Observables


def fx(base: Currency | str, quote: Currency | str) -> ast.Observable:
    """Spot rate: units of quote per unit of base."""
    return Currency(base) / Currency(quote)


def libor(notional: Any, start: date | str, end: date | str) -> ast.Expr:
    """Floating leg: notional x LIBOR fixing for the period x act/360."""
    start, end = as_date_ref(start), as_date_ref(end)
    fixing = ast.Observable(kind="libor", dates=(start, end))
    return ast.as_expr(notional) * fixing * ast.DayCount(convention="act/360", start=start, end=end)


def interest(
    notional: Any, convention: str, rate: Any, start: date | str, end: date | str
) -> ast.Expr:
    """Fixed leg: notional x rate (in percent) x year fraction."""
    start, end = as_date_ref(start), as_date_ref(end)
    fraction = ast.DayCount(convention=convention, start=start, end=end)
    return ast.as_expr(notional) * ast.as_expr(rate) / 100 * fraction


__all__ = [
    "K",
    "M",
    "START",
    "END",
    "USD",
    "EUR",
    "GBP",
    "JPY",
    "CHF",
    "Currency",
    "Frequency",
    "zero",
    "Choice",
    "party",
    "after",
    "before",
    "given_that",
    "anytime",
    "actions",
    "arrange",
    "roll_out",
    "next_period",
    "var",
    "const",
    "fx",
    "libor",
    "interest",
]

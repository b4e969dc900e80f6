"""AST nodes for universal contracts.

A contract is an immutable tree. Amount expressions, guards, party sets and
arrangement nodes are all frozen pydantic models discriminated by ``type`` so
that a tree serializes to JSON and validates back into an equivalent tree.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any
from typing import Literal as TypingLiteral

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from .errors import ConstructionError
from .schedule import Frequency, generate_periods

# A concrete date, or the bounds of the enclosing rollout period.
DateRef = date | TypingLiteral["start", "end"]

PERIOD_BOUNDS = ("start", "end")


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CHF = "CHF"
    CAD = "CAD"
    AUD = "AUD"
    DKK = "DKK"
    SEK = "SEK"
    NOK = "NOK"

    def __truediv__(self, other: "Currency") -> "Observable":
        """``EUR / USD`` is the EUR/USD spot rate."""
        return Observable(kind="fx", params=(self.value, Currency(other).value))


# Expressions


class Arithmetic:
    """Operator sugar shared by every amount expression node."""

    def __add__(self, other: Any) -> "BinOp":
        return BinOp(op="+", left=self, right=as_expr(other))

    def __radd__(self, other: Any) -> "BinOp":
        return BinOp(op="+", left=as_expr(other), right=self)

    def __sub__(self, other: Any) -> "BinOp":
        return BinOp(op="-", left=self, right=as_expr(other))

    def __rsub__(self, other: Any) -> "BinOp":
        return BinOp(op="-", left=as_expr(other), right=self)

    def __mul__(self, other: Any) -> "BinOp":
        return BinOp(op="*", left=self, right=as_expr(other))

    def __rmul__(self, other: Any) -> "BinOp":
        return BinOp(op="*", left=as_expr(other), right=self)

    def __truediv__(self, other: Any) -> "BinOp":
        return BinOp(op="/", left=self, right=as_expr(other))

    def __rtruediv__(self, other: Any) -> "BinOp":
        return BinOp(op="/", left=as_expr(other), right=self)

    def __neg__(self) -> "UnaryOp":
        return UnaryOp(op="-", operand=self)

    def plus(self) -> "Call":
        """Clamp at zero: max(x, 0)."""
        return Call(func="plus", args=(self,))


class Const(Arithmetic, Node):
    type: TypingLiteral["const"] = "const"
    value: Decimal


class Var(Arithmetic, Node):
    """Rollout state variable (``vars.cap``)."""

    type: TypingLiteral["var"] = "var"
    name: str


class Observable(Arithmetic, Node):
    """Market value supplied by the caller's resolver (fixing, FX spot)."""

    type: TypingLiteral["observable"] = "observable"
    kind: str
    params: tuple[str, ...] = ()
    dates: tuple[DateRef, ...] = ()


class DayCount(Arithmetic, Node):
    """Year fraction between two dates under a day-count convention."""

    type: TypingLiteral["daycount"] = "daycount"
    convention: str
    start: DateRef
    end: DateRef


class BinOp(Arithmetic, Node):
    type: TypingLiteral["binop"] = "binop"
    op: TypingLiteral["+", "-", "*", "/"]
    left: "Expr"
    right: "Expr"


class UnaryOp(Arithmetic, Node):
    type: TypingLiteral["unaryop"] = "unaryop"
    op: TypingLiteral["-"] = "-"
    operand: "Expr"


class Call(Arithmetic, Node):
    """Function call (plus(x), max(a, b), min(a, b))."""

    type: TypingLiteral["call"] = "call"
    func: str
    args: tuple["Expr", ...]


Expr = Annotated[
    Const | Var | Observable | DayCount | BinOp | UnaryOp | Call,
    Field(discriminator="type"),
]


def as_expr(value: Any) -> Any:
    """Coerce a Python number (or numeric string) to a Const."""
    if isinstance(value, Arithmetic):
        return value
    if isinstance(value, bool):
        raise ConstructionError(f"not an amount: {value!r}")
    if isinstance(value, Decimal):
        return Const(value=value)
    if isinstance(value, int):
        return Const(value=Decimal(value))
    if isinstance(value, (float, str)):
        try:
            return Const(value=Decimal(str(value)))
        except InvalidOperation:
            raise ConstructionError(f"not an amount: {value!r}") from None
    raise ConstructionError(f"not an amount: {value!r}")


# Guards


class Anytime(Node):
    type: TypingLiteral["anytime"] = "anytime"


class Before(Node):
    type: TypingLiteral["before"] = "before"
    at: DateRef


class After(Node):
    type: TypingLiteral["after"] = "after"
    at: DateRef


Guard = Annotated[Anytime | Before | After, Field(discriminator="type")]


# Parties


class PartyChoice:
    """Sugar shared by Party and AnyOf."""

    def __or__(self, other: "Party | AnyOf") -> "AnyOf":
        return AnyOf(left=self, right=other)

    def may(self, *choices: Any) -> tuple["Action", ...]:
        """Offer choices (built by given_that/anytime) to these parties."""
        return tuple(choice.bind(self) for choice in choices)


class Party(PartyChoice, Node):
    type: TypingLiteral["party"] = "party"
    name: str

    def members(self) -> tuple["Party", ...]:
        return (self,)

    def includes(self, party: "Party") -> bool:
        return party == self

    def gives(self, payee: "Party", amount: Any, currency: Currency) -> "Obligation":
        return Obligation(payer=self, payee=payee, amount=as_expr(amount), currency=currency)

    def __str__(self) -> str:
        return self.name


class AnyOf(PartyChoice, Node):
    """Either party may elect (binary union, associative)."""

    type: TypingLiteral["or"] = "or"
    left: "PartySet"
    right: "PartySet"

    def members(self) -> tuple[Party, ...]:
        seen: list[Party] = []
        for party in self.left.members() + self.right.members():
            if party not in seen:
                seen.append(party)
        return tuple(seen)

    def includes(self, party: Party) -> bool:
        return party in self.members()

    def __str__(self) -> str:
        return " or ".join(p.name for p in self.members())


PartySet = Annotated[Party | AnyOf, Field(discriminator="type")]


# Obligations


class Obligation(Node):
    """A transfer of an amount from payer to payee, amount not yet evaluated."""

    type: TypingLiteral["obligation"] = "obligation"
    payer: Party
    payee: Party
    amount: Expr
    currency: Currency


class ResolvedObligation(Node):
    payer: Party
    payee: Party
    amount: Decimal
    currency: Currency

    def __str__(self) -> str:
        return f"{self.payer} -> {self.payee} {self.amount} {self.currency.value}"


# Arrangements


def sorted_bindings(value: Any) -> Any:
    """Accept a mapping or (name, expr) pairs; keep the pairs sorted by name."""
    if isinstance(value, Mapping):
        value = list(value.items())
    if not isinstance(value, (list, tuple)):
        return value
    pairs = sorted(value, key=lambda pair: pair[0])
    for (a, _), (b, _) in zip(pairs, pairs[1:]):
        if a == b:
            raise ValueError(f"variable bound twice: {a}")
    return tuple(pairs)


# Rollout state: name -> expression, as an immutable sorted tuple of pairs.
Bindings = Annotated[tuple[tuple[str, Expr], ...], BeforeValidator(sorted_bindings)]


class RolloutSchedule(Node):
    start: date
    end: date
    frequency: Frequency
    variables: Bindings = ()

    @model_validator(mode="after")
    def _check_range(self) -> "RolloutSchedule":
        if self.end <= self.start:
            raise ConstructionError(f"schedule ends ({self.end}) before it starts ({self.start})")
        return self

    def periods(self) -> list[tuple[date, date]]:
        return generate_periods(self.start, self.end, self.frequency)


class Action(Node):
    label: str
    actors: PartySet
    guard: Guard
    effects: tuple[Obligation, ...] = ()
    continuation: "Arrangement"


class Zero(Node):
    """Terminal: no further obligations, ever."""

    type: TypingLiteral["zero"] = "zero"


class Actions(Node):
    """Mutually exclusive elections available at this point."""

    type: TypingLiteral["actions"] = "actions"
    actions: tuple[Action, ...]

    @model_validator(mode="after")
    def _unique_labels(self) -> "Actions":
        if not self.actions:
            raise ConstructionError("actions block offers no action")
        seen: set[str] = set()
        for action in self.actions:
            if action.label in seen:
                raise ConstructionError(f"duplicate action label: {action.label}")
            seen.add(action.label)
        return self

    def get(self, label: str) -> Action | None:
        for action in self.actions:
            if action.label == label:
                return action
        return None


class Next(Node):
    """Advance a rollout to its next period, rebinding the named variables.

    Only meaningful inside a rollout body; expansion turns it into Continue.
    """

    type: TypingLiteral["next"] = "next"
    assignments: Bindings = ()


class Continue(Node):
    """A Next bound to its rollout: instantiates ``period`` of ``schedule`` on election."""

    type: TypingLiteral["continue"] = "continue"
    schedule: RolloutSchedule
    body: "Arrangement"
    period: int
    bindings: Bindings = ()
    assignments: Bindings = ()


Arrangement = Annotated[Zero | Actions | Next | Continue, Field(discriminator="type")]


# Rebuild models for forward references
BinOp.model_rebuild()
UnaryOp.model_rebuild()
Call.model_rebuild()
AnyOf.model_rebuild()
Obligation.model_rebuild()
RolloutSchedule.model_rebuild()
Action.model_rebuild()
Actions.model_rebuild()
Next.model_rebuild()
Continue.model_rebuild()

"""Rollout expansion: periodic schedules as chains of bound arrangements.

A rollout body is a template. Instantiating period i replaces ``start`` and
``end`` with the period bounds and every ``vars.<name>`` with that period's
binding, and turns each Next directive into a Continue node that knows how to
build period i+1. Nothing is expanded ahead of time: the next period is only
instantiated when an election reaches its Continue, because the new variable
values depend on what was observed when the election happened.
"""

from dataclasses import dataclass
from datetime import date

from . import ast
from .errors import ConstructionError
from .expressions import Environment, evaluate
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PeriodContext:
    schedule: ast.RolloutSchedule
    body: ast.Arrangement
    index: int
    start: date
    end: date
    bindings: dict[str, ast.Expr]


def expand(schedule: ast.RolloutSchedule, body: ast.Arrangement) -> ast.Arrangement:
    """Instantiate the first period of a rollout."""
    names: set[str] = set()
    _arrangement_vars(body, names)
    declared = dict(schedule.variables)
    unbound = sorted(names - set(declared))
    if unbound:
        raise ConstructionError(f"undeclared rollout variable(s): {', '.join(unbound)}")

    for name, expr in schedule.variables:
        if _expr_vars(expr, set()) or _expr_has_bounds(expr):
            raise ConstructionError(f"initial value of {name} must not refer to variables or period bounds")

    logger.debug(
        "rollout_expanded",
        start=schedule.start.isoformat(),
        end=schedule.end.isoformat(),
        frequency=schedule.frequency.value,
        periods=len(schedule.periods()),
        variables=sorted(declared),
    )
    return instantiate(schedule, body, 0, declared)


def instantiate(
    schedule: ast.RolloutSchedule,
    body: ast.Arrangement,
    index: int,
    bindings: dict[str, ast.Expr],
) -> ast.Arrangement:
    """Bind period ``index`` of the schedule into the body template."""
    start, end = schedule.periods()[index]
    ctx = PeriodContext(schedule, body, index, start, end, bindings)
    return _bind_arrangement(body, ctx)


def resolve_continue(node: ast.Continue, env: Environment) -> ast.Arrangement:
    """Advance past a Continue: Zero after the last period, else the next period.

    Rebound variables are evaluated now, against the election's environment,
    and frozen into constants for the next period.
    """
    if node.period >= len(node.schedule.periods()):
        return ast.Zero()

    bindings = dict(node.bindings)
    for name, expr in node.assignments:
        bindings[name] = ast.Const(value=evaluate(expr, env))
    return instantiate(node.schedule, node.body, node.period, bindings)


def check_closed(tree: ast.Arrangement) -> None:
    """Reject Next directives and period bounds that sit outside any rollout."""
    match tree:
        case ast.Zero() | ast.Continue():
            return
        case ast.Next():
            raise ConstructionError("next() used outside a rollout")
        case ast.Actions(actions=actions):
            for action in actions:
                if _guard_has_bounds(action.guard) or any(
                    _expr_has_bounds(o.amount) for o in action.effects
                ):
                    raise ConstructionError(
                        f"action {action.label!r} refers to start/end outside a rollout"
                    )
                check_closed(action.continuation)


# Binding


def _bind_date(ref: ast.DateRef, ctx: PeriodContext) -> date:
    if ref == "start":
        return ctx.start
    if ref == "end":
        return ctx.end
    return ref


def _bind_expr(expr: ast.Expr, ctx: PeriodContext) -> ast.Expr:
    match expr:
        case ast.Const():
            return expr
        case ast.Var(name=name):
            if name not in ctx.bindings:
                raise ConstructionError(f"undeclared rollout variable: {name}")
            return ctx.bindings[name]
        case ast.Observable(kind=kind, params=params, dates=dates):
            return ast.Observable(
                kind=kind, params=params, dates=tuple(_bind_date(d, ctx) for d in dates)
            )
        case ast.DayCount(convention=conv, start=start, end=end):
            return ast.DayCount(
                convention=conv, start=_bind_date(start, ctx), end=_bind_date(end, ctx)
            )
        case ast.BinOp(op=op, left=left, right=right):
            return ast.BinOp(op=op, left=_bind_expr(left, ctx), right=_bind_expr(right, ctx))
        case ast.UnaryOp(op=op, operand=operand):
            return ast.UnaryOp(op=op, operand=_bind_expr(operand, ctx))
        case ast.Call(func=func, args=args):
            return ast.Call(func=func, args=tuple(_bind_expr(a, ctx) for a in args))
    raise TypeError(f"unknown expr type: {type(expr)}")


def _bind_guard(guard: ast.Guard, ctx: PeriodContext) -> ast.Guard:
    match guard:
        case ast.Before(at=at):
            return ast.Before(at=_bind_date(at, ctx))
        case ast.After(at=at):
            return ast.After(at=_bind_date(at, ctx))
    return guard


def _bind_arrangement(node: ast.Arrangement, ctx: PeriodContext) -> ast.Arrangement:
    match node:
        case ast.Zero() | ast.Continue():
            # a Continue here belongs to a nested rollout that is already bound
            return node
        case ast.Next(assignments=assignments):
            return ast.Continue(
                schedule=ctx.schedule,
                body=ctx.body,
                period=ctx.index + 1,
                bindings=ctx.bindings,
                assignments=tuple((k, _bind_expr(v, ctx)) for k, v in assignments),
            )
        case ast.Actions(actions=actions):
            return ast.Actions(
                actions=tuple(
                    ast.Action(
                        label=a.label,
                        actors=a.actors,
                        guard=_bind_guard(a.guard, ctx),
                        effects=tuple(
                            ast.Obligation(
                                payer=o.payer,
                                payee=o.payee,
                                amount=_bind_expr(o.amount, ctx),
                                currency=o.currency,
                            )
                            for o in a.effects
                        ),
                        continuation=_bind_arrangement(a.continuation, ctx),
                    )
                    for a in actions
                )
            )
    raise TypeError(f"unknown arrangement type: {type(node)}")


# Walkers


def _expr_vars(expr: ast.Expr, names: set[str]) -> set[str]:
    match expr:
        case ast.Var(name=name):
            names.add(name)
        case ast.BinOp(left=left, right=right):
            _expr_vars(left, names)
            _expr_vars(right, names)
        case ast.UnaryOp(operand=operand):
            _expr_vars(operand, names)
        case ast.Call(args=args):
            for arg in args:
                _expr_vars(arg, names)
    return names


def _expr_has_bounds(expr: ast.Expr) -> bool:
    match expr:
        case ast.Observable(dates=dates):
            return any(d in ast.PERIOD_BOUNDS for d in dates)
        case ast.DayCount(start=start, end=end):
            return start in ast.PERIOD_BOUNDS or end in ast.PERIOD_BOUNDS
        case ast.BinOp(left=left, right=right):
            return _expr_has_bounds(left) or _expr_has_bounds(right)
        case ast.UnaryOp(operand=operand):
            return _expr_has_bounds(operand)
        case ast.Call(args=args):
            return any(_expr_has_bounds(a) for a in args)
    return False


def _guard_has_bounds(guard: ast.Guard) -> bool:
    match guard:
        case ast.Before(at=at) | ast.After(at=at):
            return at in ast.PERIOD_BOUNDS
    return False


def _arrangement_vars(node: ast.Arrangement, names: set[str]) -> None:
    match node:
        case ast.Next(assignments=assignments):
            for name, expr in assignments:
                names.add(name)
                _expr_vars(expr, names)
        case ast.Actions(actions=actions):
            for action in actions:
                for o in action.effects:
                    _expr_vars(o.amount, names)
                _arrangement_vars(action.continuation, names)

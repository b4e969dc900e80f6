"""Expression engine: evaluates amount expressions to Decimals.

Evaluation is pure. The same (expr, env) always yields the same Decimal,
because every holder of a contract must agree on the obligations it emits.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)

from . import ast
from .daycount import year_fraction
from .errors import EvalError, EvalErrorKind

DEFAULT_PRECISION = 28


@dataclass(frozen=True)
class ObservableKey:
    """What a resolver is asked for: kind plus concrete arguments."""

    kind: str
    params: tuple[str, ...] = ()
    dates: tuple[date, ...] = ()

    def __str__(self) -> str:
        args = [*self.params, *(d.isoformat() for d in self.dates)]
        return f"{self.kind}({', '.join(args)})"


Resolver = Callable[[ObservableKey], Decimal | None]


def no_observables(key: ObservableKey) -> Decimal | None:
    return None


@dataclass(frozen=True)
class Environment:
    """Variable bindings plus the observable resolver."""

    variables: Mapping[str, Decimal] = field(default_factory=dict)
    resolver: Resolver = no_observables
    precision: int = DEFAULT_PRECISION


def decimal_context(precision: int) -> Context:
    return Context(
        prec=precision,
        rounding=ROUND_HALF_EVEN,
        Emax=999999,
        Emin=-999999,
        traps=[DivisionByZero, Overflow, InvalidOperation],
    )


def exact_decimal(value) -> Decimal:
    """Floats convert through their repr: 0.1 means Decimal("0.1")."""
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def concrete_date(ref: ast.DateRef) -> date:
    if isinstance(ref, date):
        return ref
    raise EvalError(EvalErrorKind.UNBOUND_DATE, f"'{ref}' used outside a rollout period")


def observable_key(node: ast.Observable) -> ObservableKey:
    return ObservableKey(
        kind=node.kind,
        params=node.params,
        dates=tuple(concrete_date(d) for d in node.dates),
    )


def evaluate(expr: ast.Expr, env: Environment | None = None) -> Decimal:
    """Evaluate an amount expression."""
    env = env or Environment()
    with localcontext(decimal_context(env.precision)):
        try:
            return _eval(expr, env)
        except Overflow as e:
            raise EvalError(EvalErrorKind.OVERFLOW, str(e)) from e
        except DivisionByZero as e:
            raise EvalError(EvalErrorKind.DIVISION_BY_ZERO, str(e)) from e
        except InvalidOperation as e:
            raise EvalError(EvalErrorKind.INVALID_OPERATION, str(e)) from e


def _eval(expr: ast.Expr, env: Environment) -> Decimal:
    match expr:
        case ast.Const(value=v):
            return +v

        case ast.Var(name=name):
            if name not in env.variables:
                raise EvalError(EvalErrorKind.UNBOUND_VARIABLE, name)
            return +exact_decimal(env.variables[name])

        case ast.Observable():
            key = observable_key(expr)
            value = env.resolver(key)
            if value is None:
                raise EvalError(EvalErrorKind.UNAVAILABLE_OBSERVABLE, str(key))
            return +exact_decimal(value)

        case ast.DayCount(convention=conv, start=start, end=end):
            return year_fraction(conv, concrete_date(start), concrete_date(end))

        case ast.BinOp(op=op, left=left, right=right):
            left_val = _eval(left, env)
            right_val = _eval(right, env)
            match op:
                case "+":
                    return left_val + right_val
                case "-":
                    return left_val - right_val
                case "*":
                    return left_val * right_val
                case "/":
                    if right_val == 0:
                        raise EvalError(EvalErrorKind.DIVISION_BY_ZERO, f"{left_val} / 0")
                    return left_val / right_val
            raise EvalError(EvalErrorKind.INVALID_OPERATION, f"unknown op: {op}")

        case ast.UnaryOp(operand=operand):
            return -_eval(operand, env)

        case ast.Call(func=func, args=args):
            values = [_eval(a, env) for a in args]
            match func:
                case "plus" if len(values) == 1:
                    return max(values[0], Decimal(0))
                case "max" if values:
                    return max(values)
                case "min" if values:
                    return min(values)
            raise EvalError(EvalErrorKind.UNKNOWN_FUNCTION, f"{func}/{len(values)}")

    raise EvalError(EvalErrorKind.INVALID_OPERATION, f"unknown expr type: {type(expr)}")

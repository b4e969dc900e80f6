"""Tests for amount evaluation and day counts."""

from datetime import date
from decimal import Decimal

import pytest

from contracts import EURUSD, market
from universal import Environment, EvalError, EvalErrorKind, evaluate
from universal.ast import Call, Const, DayCount, Observable, Var
from universal.daycount import year_fraction
from universal.dsl import EUR, USD, const, fx, interest, libor, var


class TestArithmetic:
    def test_operators_build_expressions(self):
        expr = const(10) * 3 + 4 - 1
        assert evaluate(expr) == Decimal(33)

    def test_reverse_operators(self):
        assert evaluate(100 - const(40)) == Decimal(60)
        assert evaluate(2 * const("1.5")) == Decimal(3)
        assert evaluate(1 / const(4)) == Decimal("0.25")

    def test_negation(self):
        assert evaluate(-const(5)) == Decimal(-5)

    def test_plus_clamps_at_zero(self):
        assert evaluate((const(1) - 3).plus()) == Decimal(0)
        assert evaluate((const(3) - 1).plus()) == Decimal(2)

    def test_max_min(self):
        assert evaluate(Call(func="max", args=(const(1), const(7), const(3)))) == Decimal(7)
        assert evaluate(Call(func="min", args=(const(1), const(7)))) == Decimal(1)

    def test_float_literals_are_exact(self):
        assert const(0.1).value == Decimal("0.1")

    def test_same_inputs_same_result(self, env):
        expr = libor(10_000_000, date(2015, 4, 1), date(2015, 7, 1))
        assert evaluate(expr, env) == evaluate(expr, env)


class TestFailuresAreErrors:
    def test_division_by_zero(self):
        with pytest.raises(EvalError) as exc:
            evaluate(const(1) / 0)
        assert exc.value.kind is EvalErrorKind.DIVISION_BY_ZERO

    def test_zero_by_zero(self):
        with pytest.raises(EvalError) as exc:
            evaluate(const(0) / 0)
        assert exc.value.kind is EvalErrorKind.DIVISION_BY_ZERO

    def test_unavailable_observable(self):
        with pytest.raises(EvalError) as exc:
            evaluate(fx(EUR, USD))
        assert exc.value.kind is EvalErrorKind.UNAVAILABLE_OBSERVABLE
        assert "fx(EUR, USD)" in exc.value.detail

    def test_unbound_variable(self):
        with pytest.raises(EvalError) as exc:
            evaluate(var("cap") + 1)
        assert exc.value.kind is EvalErrorKind.UNBOUND_VARIABLE

    def test_bound_variable(self):
        env = Environment(variables={"cap": Decimal(150_000)})
        assert evaluate(var("cap") - 50_000, env) == Decimal(100_000)

    def test_float_variables_are_exact(self):
        env = Environment(variables={"x": 0.1})
        assert evaluate(var("x"), env) == Decimal("0.1")

    def test_period_bound_outside_rollout(self):
        with pytest.raises(EvalError) as exc:
            evaluate(Observable(kind="libor", dates=("start", "end")), Environment(resolver=market))
        assert exc.value.kind is EvalErrorKind.UNBOUND_DATE

    def test_overflow(self):
        with pytest.raises(EvalError) as exc:
            evaluate(Const(value=Decimal("9E+999999")) * 100)
        assert exc.value.kind is EvalErrorKind.OVERFLOW

    def test_unknown_function(self):
        with pytest.raises(EvalError) as exc:
            evaluate(Call(func="sqrt", args=(const(4),)))
        assert exc.value.kind is EvalErrorKind.UNKNOWN_FUNCTION


class TestObservables:
    def test_currency_division_is_fx_spot(self):
        assert EUR / USD == Observable(kind="fx", params=("EUR", "USD"))

    def test_fx_resolves(self, env):
        assert evaluate(fx(EUR, USD), env) == EURUSD

    def test_float_resolver_values_are_exact(self):
        env = Environment(resolver=lambda key: 1.1)
        assert evaluate(fx(EUR, USD), env) == Decimal("1.1")

    def test_libor_leg(self, env):
        expr = libor(10_000_000, date(2015, 4, 1), date(2015, 7, 1))
        expected = Decimal(10_000_000) * Decimal("0.02") * (Decimal(91) / Decimal(360))
        assert evaluate(expr, env) == expected

    def test_fixed_leg(self):
        expr = interest(10_000_000, "act/365", Decimal("1.5"), date(2015, 4, 1), date(2015, 7, 1))
        expected = Decimal(10_000_000) * Decimal("1.5") / 100 * (Decimal(91) / Decimal(365))
        assert evaluate(expr) == expected

    def test_precision_is_part_of_the_environment(self):
        third = const(1) / 3
        assert len(str(evaluate(third, Environment(precision=5)))) == len("0.33333")


class TestDayCount:
    def test_act_365(self):
        assert year_fraction("act/365", date(2015, 1, 1), date(2016, 1, 1)) == Decimal(1)

    def test_act_360(self):
        assert year_fraction("ACT/360", date(2015, 1, 1), date(2015, 1, 31)) == Decimal(30) / 360

    def test_thirty_360_month_end(self):
        assert year_fraction("30/360", date(2015, 1, 31), date(2015, 2, 28)) == Decimal(28) / 360
        assert year_fraction("30/360", date(2015, 1, 30), date(2015, 3, 31)) == Decimal(60) / 360

    def test_unknown_convention(self):
        with pytest.raises(EvalError) as exc:
            evaluate(DayCount(convention="bus/252", start=date(2015, 1, 1), end=date(2015, 2, 1)))
        assert exc.value.kind is EvalErrorKind.UNKNOWN_CONVENTION

    def test_var_node_round_trip_name(self):
        assert Var(name="cap") == var("cap")

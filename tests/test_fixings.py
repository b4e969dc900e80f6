"""Tests for fixings files."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from universal import EvalError, Fixings, ObservableKey, elect, evaluate, load_fixings, parse_file
from universal.dsl import EUR, USD, fx, libor

EXAMPLES = Path(__file__).parent.parent / "examples"


class TestFixings:
    def test_load_example(self):
        fixings = load_fixings(EXAMPLES / "fixings.yaml")
        table = fixings.table()
        key = ObservableKey(kind="libor", dates=(date(2015, 4, 1), date(2015, 7, 1)))
        assert table[key] == Decimal("0.0028")

    def test_floats_are_exact(self, tmp_path):
        path = tmp_path / "fixings.yaml"
        path.write_text("fixings:\n  - kind: fx\n    params: [EUR, USD]\n    value: 1.1\n")
        env = load_fixings(path).environment()
        assert evaluate(fx(EUR, USD), env) == Decimal("1.1")

    def test_variables(self):
        fixings = Fixings.model_validate({"variables": {"cap": 0.5}})
        assert fixings.environment().variables == {"cap": Decimal("0.5")}

    def test_conflicting_fixings(self):
        fixings = Fixings.model_validate(
            {
                "fixings": [
                    {"kind": "fx", "params": ["EUR", "USD"], "value": "1.25"},
                    {"kind": "fx", "params": ["EUR", "USD"], "value": "1.26"},
                ]
            }
        )
        with pytest.raises(ValueError, match="conflicting"):
            fixings.table()

    def test_repeated_identical_fixing(self):
        fixings = Fixings.model_validate(
            {"fixings": [{"kind": "fx", "params": ["EUR", "USD"], "value": v} for v in ("1.25", "1.250")]}
        )
        assert len(fixings.table()) == 1

    def test_environment_precision(self):
        env = Fixings().environment(precision=10)
        assert env.precision == 10

    def test_missing_fixing_is_an_error(self):
        env = load_fixings(EXAMPLES / "fixings.yaml").environment()
        with pytest.raises(EvalError):
            evaluate(libor(100, date(2016, 1, 1), date(2016, 4, 1)), env)

    def test_elect_example_with_fixings(self):
        tree = parse_file(EXAMPLES / "swaption.ucl")
        env = load_fixings(EXAMPLES / "fixings.yaml").environment()
        result = elect(tree, "acmeCorp", "proceed", date(2015, 7, 2), env)
        floating = result.effects[0]
        assert floating.currency is USD
        assert floating.amount == Decimal(10_000_000) * Decimal("0.0028") * (Decimal(91) / Decimal(360))

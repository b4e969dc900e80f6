"""Tests for the .ucl parser."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from contracts import build_swap, build_swaption
from universal import Actions, Zero, content_hash, elect
from universal.ast import BinOp, Const, Var
from universal.parser import Lexer, ParseError, parse, parse_file

EXAMPLES = Path(__file__).parent.parent / "examples"

HEADER = "party bank, corp\n"


def contract(body: str) -> str:
    return HEADER + "arrange\n" + body


class TestLexer:
    def test_dates_and_numbers(self):
        tokens = Lexer("01/07/2015 2015-07-01 10K 1.5M 42").tokens
        assert [t.type for t in tokens] == ["DATE", "DATE", "NUMBER", "NUMBER", "NUMBER", "EOF"]

    def test_keywords(self):
        tokens = Lexer("arrange actions may gives acme").tokens
        assert [t.type for t in tokens[:-1]] == ["ARRANGE", "ACTIONS", "MAY", "GIVES", "IDENT"]

    def test_comments_skipped(self):
        tokens = Lexer("// whole line\nzero # trailing\n").tokens
        assert [t.type for t in tokens] == ["ZERO", "EOF"]

    def test_unexpected_char_position(self):
        with pytest.raises(ParseError) as exc:
            Lexer("party a\n  $")
        assert (exc.value.line, exc.value.col) == (2, 3)


class TestExamples:
    def test_swaption_matches_python_dsl(self):
        parsed = parse_file(EXAMPLES / "swaption.ucl")
        assert parsed == build_swaption()
        assert content_hash(parsed) == content_hash(build_swaption())

    def test_swap_matches_python_dsl(self):
        assert parse_file(EXAMPLES / "swap.ucl") == build_swap()

    def test_tarf_matches_python_dsl(self, tarf_uses):
        assert parse_file(EXAMPLES / "tarf.ucl") == tarf_uses

    def test_parsed_contract_elects(self, env):
        tree = parse_file(EXAMPLES / "swaption.ucl")
        result = elect(tree, "acmeCorp", "cancel", date(2015, 1, 1), env)
        assert result.effects[0].amount == Decimal(10_000)
        assert result.successor == Zero()


class TestArrangements:
    def test_zero(self):
        assert parse(contract("zero")) == Zero()

    def test_consecutive_actions_blocks_merge(self):
        tree = parse(contract(
            'actions { bank may "a" anytime { } }\n'
            'actions { corp may "b" anytime { } }'
        ))
        assert isinstance(tree, Actions)
        assert [a.label for a in tree.actions] == ["a", "b"]

    def test_grouped_choices(self):
        tree = parse(contract(
            'actions { corp may { "a" anytime { } "b" before 01/01/2016 { } } }'
        ))
        assert [a.label for a in tree.actions] == ["a", "b"]
        assert tree.get("b").guard.at == date(2016, 1, 1)

    def test_iso_dates(self):
        tree = parse(contract('actions { corp may "a" after 2015-07-01 { } }'))
        assert tree.get("a").guard.at == date(2015, 7, 1)

    def test_rollout_with_variables(self):
        tree = parse(contract(
            "rollout 01/01/2015 to 01/01/2016 annually with (cap = 100) {\n"
            '  actions { corp may "pay" before end {\n'
            "    corp gives bank vars.cap USD\n"
            "    next(cap = vars.cap / 2)\n"
            "  } }\n"
            "}"
        ))
        action = tree.get("pay")
        assert action.guard.at == date(2016, 1, 1)
        assert action.effects[0].amount == Const(value=Decimal(100))
        assert action.continuation.assignments == (
            ("cap", BinOp(op="/", left=Const(value=Decimal(100)), right=Const(value=Decimal(2)))),
        )


class TestExpressions:
    def amount(self, source: str):
        tree = parse(contract(f'actions {{ corp may "a" anytime {{ corp gives bank {source} USD }} }}'))
        return tree.get("a").effects[0].amount

    def test_suffixes(self):
        assert self.amount("10K") == Const(value=Decimal(10_000))
        assert self.amount("1.5M") == Const(value=Decimal(1_500_000))

    def test_precedence(self):
        assert self.amount("1 + 2 * 3") == BinOp(
            op="+",
            left=Const(value=Decimal(1)),
            right=BinOp(op="*", left=Const(value=Decimal(2)), right=Const(value=Decimal(3))),
        )

    def test_plus_forms_agree(self):
        assert self.amount("(1 - 2).plus()") == self.amount("plus(1 - 2)")

    def test_let_is_scoped_to_its_choice(self):
        source = HEADER + (
            "arrange actions {\n"
            '  corp may "a" anytime { let x = 5 corp gives bank x USD }\n'
            '  corp may "b" anytime { corp gives bank x USD }\n'
            "}"
        )
        with pytest.raises(ParseError, match="unknown name: x"):
            parse(source)

    def test_inner_let_shadows_outer(self):
        source = HEADER + (
            "let x = 1\n"
            'arrange actions { corp may "a" anytime { let x = 2 corp gives bank x USD } }'
        )
        assert parse(source).get("a").effects[0].amount == Const(value=Decimal(2))

    def test_vars_reference(self):
        source = contract(
            "rollout 01/01/2015 to 01/01/2016 annually with (n = 1) {\n"
            '  actions { corp may "a" anytime { next(n = vars.n + 1) } }\n'
            "}"
        )
        pending = parse(source).get("a").continuation
        assert dict(pending.assignments)["n"] == BinOp(
            op="+", left=Const(value=Decimal(1)), right=Const(value=Decimal(1))
        )
        assert Var(name="n") not in dict(pending.assignments).values()


class TestErrors:
    def test_unknown_party(self):
        with pytest.raises(ParseError, match="unknown party: dealer"):
            parse(contract('actions { dealer may "a" anytime { } }'))

    def test_unknown_currency(self):
        with pytest.raises(ParseError, match="unknown currency: XYZ"):
            parse(contract('actions { corp may "a" anytime { corp gives bank 1 XYZ } }'))

    def test_invalid_date(self):
        with pytest.raises(ParseError, match="invalid date"):
            parse(contract('actions { corp may "a" after 31/02/2015 { } }'))

    def test_unknown_frequency(self):
        with pytest.raises(ParseError, match="unknown frequency"):
            parse(contract('rollout 01/01/2015 to 01/01/2016 hourly { zero }'))

    def test_rollout_backwards(self):
        with pytest.raises(ParseError, match="before it starts"):
            parse(contract('rollout 01/01/2016 to 01/01/2015 monthly { zero }'))

    def test_unknown_function(self):
        with pytest.raises(ParseError, match="unknown function: sqrt"):
            parse(contract('actions { corp may "a" anytime { corp gives bank sqrt(4) USD } }'))

    def test_duplicate_label(self):
        with pytest.raises(Exception, match="duplicate action label"):
            parse(contract('actions { corp may "a" anytime { } bank may "a" anytime { } }'))

    def test_next_outside_rollout(self):
        with pytest.raises(Exception, match="outside a rollout"):
            parse(contract('actions { corp may "a" anytime { next() } }'))

    def test_error_position(self):
        with pytest.raises(ParseError) as exc:
            parse(HEADER + "arrange\nactions { corp may anytime { } }")
        assert exc.value.line == 3
        assert "expected STRING" in str(exc.value)

    def test_party_declared_twice(self):
        with pytest.raises(ParseError, match="declared twice"):
            parse("party a, a\narrange zero")

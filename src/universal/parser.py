"""Parser for .ucl contract files.

Grammar (simplified):
    contract    = (party_decl | let_decl)* "arrange" arrangement
    party_decl  = "party" NAME ("," NAME)*
    let_decl    = "let" NAME "=" expr
    arrangement = "zero" | actions+ | rollout
    actions     = "actions" "{" clause+ "}"
    clause      = parties "may" (choice | "{" choice+ "}")
    parties     = NAME ("or" NAME)*
    choice      = STRING guard "{" body "}"
    guard       = "anytime" | ("after" | "before") date
    date        = DATE | "start" | "end"
    body        = (let_decl | gives)* [arrangement | next]
    gives       = NAME "gives" NAME expr CURRENCY
    next        = "next" "(" [NAME "=" expr ("," NAME "=" expr)*] ")"
    rollout     = "rollout" date "to" date FREQUENCY ["with" "(" NAME "=" expr ("," ...)* ")"]
                  "{" arrangement "}"
    expr        = add_expr
    add_expr    = mul_expr (("+" | "-") mul_expr)*
    mul_expr    = unary (("*" | "/") unary)*
    unary       = "-" unary | postfix
    postfix     = primary ("." "plus" "(" ")")*
    primary     = NUMBER | NAME | "vars" "." NAME | call | "(" expr ")"
    call        = libor(expr, date, date) | interest(expr, STRING, expr, date, date)
                | fx(CURRENCY, CURRENCY) | plus(expr) | max(expr, ...) | min(expr, ...)

Dates are dd/MM/yyyy or ISO; numbers accept a K or M suffix (10K, 1.5M).
Comments run from // or # to end of line. Consecutive actions blocks in one
body are merged into a single set of elections.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from . import ast, dsl
from .errors import ContractError
from .schedule import Frequency


@dataclass
class Token:
    type: str
    value: str
    line: int
    col: int


class ParseError(ContractError):
    def __init__(self, msg: str, line: int, col: int):
        super().__init__(f"line {line}, col {col}: {msg}")
        self.line = line
        self.col = col


class Lexer:
    """Simple lexer for .ucl files."""

    KEYWORDS = {
        "party",
        "let",
        "arrange",
        "actions",
        "may",
        "gives",
        "anytime",
        "after",
        "before",
        "zero",
        "next",
        "rollout",
        "to",
        "with",
        "or",
        "vars",
        "start",
        "end",
    }

    TOKEN_PATTERNS = [
        (re.compile(r"(//|#)[^\n]*"), "COMMENT"),
        (re.compile(r"\s+"), "WS"),
        (re.compile(r"\d{2}/\d{2}/\d{4}"), "DATE"),
        (re.compile(r"\d{4}-\d{2}-\d{2}"), "DATE"),
        (re.compile(r"\d+(\.\d+)?[KM]?(?![A-Za-z0-9_])"), "NUMBER"),
        (re.compile(r'"[^"\n]*"'), "STRING"),
        (re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*"), "IDENT"),
        (re.compile(r"\{"), "LBRACE"),
        (re.compile(r"\}"), "RBRACE"),
        (re.compile(r"\("), "LPAREN"),
        (re.compile(r"\)"), "RPAREN"),
        (re.compile(r","), "COMMA"),
        (re.compile(r"\."), "DOT"),
        (re.compile(r"="), "EQUALS"),
        (re.compile(r"\+"), "PLUS"),
        (re.compile(r"-"), "MINUS"),
        (re.compile(r"\*"), "STAR"),
        (re.compile(r"/"), "SLASH"),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []
        self._tokenise()

    def _tokenise(self) -> None:
        while self.pos < len(self.source):
            for pattern, ttype in self.TOKEN_PATTERNS:
                m = pattern.match(self.source, self.pos)
                if m:
                    value = m.group(0)
                    if ttype == "WS":
                        for c in value:
                            if c == "\n":
                                self.line += 1
                                self.col = 1
                            else:
                                self.col += 1
                    elif ttype != "COMMENT":
                        if ttype == "IDENT" and value in self.KEYWORDS:
                            ttype = value.upper()
                        self.tokens.append(Token(ttype, value, self.line, self.col))
                        self.col += len(value)
                    self.pos += len(value)
                    break
            else:
                raise ParseError(
                    f"unexpected char: {self.source[self.pos]!r}",
                    self.line,
                    self.col,
                )

        self.tokens.append(Token("EOF", "", self.line, self.col))


class Parser:
    """Recursive descent parser for .ucl files."""

    FREQUENCIES = {f.value: f for f in Frequency}
    MULTIPLIERS = {"K": dsl.K, "M": dsl.M}

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0
        self.parties: dict[str, ast.Party] = {}
        self.scopes: list[dict[str, ast.Expr]] = [{}]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[idx]

    def at(self, *types: str) -> bool:
        return self.peek().type in types

    def consume(self, ttype: str) -> Token:
        tok = self.peek()
        if tok.type != ttype:
            raise ParseError(f"expected {ttype}, got {tok.type}", tok.line, tok.col)
        self.pos += 1
        return tok

    def match(self, *types: str) -> Token | None:
        if self.at(*types):
            tok = self.peek()
            self.pos += 1
            return tok
        return None

    def error(self, msg: str, tok: Token | None = None) -> ParseError:
        tok = tok or self.peek()
        return ParseError(msg, tok.line, tok.col)

    def parse_contract(self) -> ast.Arrangement:
        """Parse a complete contract."""
        while not self.at("ARRANGE"):
            if self.at("PARTY"):
                self.parse_party_decl()
            elif self.at("LET"):
                self.parse_let()
            else:
                raise self.error(f"unexpected token: {self.peek().type}")

        self.consume("ARRANGE")
        tree = self.parse_arrangement()
        self.consume("EOF")
        return dsl.arrange(tree)

    def parse_party_decl(self) -> None:
        self.consume("PARTY")
        while True:
            tok = self.consume("IDENT")
            if tok.value in self.parties:
                raise self.error(f"party declared twice: {tok.value}", tok)
            self.parties[tok.value] = ast.Party(name=tok.value)
            if not self.match("COMMA"):
                break

    def parse_let(self) -> None:
        self.consume("LET")
        name = self.consume("IDENT").value
        self.consume("EQUALS")
        self.scopes[-1][name] = self.parse_expr()

    # Arrangements

    def parse_arrangement(self) -> ast.Arrangement:
        if self.match("ZERO"):
            return dsl.zero
        if self.at("ROLLOUT"):
            return self.parse_rollout()
        if self.at("ACTIONS"):
            offered: list[ast.Action] = []
            while self.at("ACTIONS"):
                offered.extend(self.parse_actions())
            return ast.Actions(actions=tuple(offered))
        raise self.error(f"expected an arrangement, got {self.peek().type}")

    def parse_actions(self) -> list[ast.Action]:
        self.consume("ACTIONS")
        self.consume("LBRACE")
        offered: list[ast.Action] = []
        while not self.at("RBRACE"):
            offered.extend(self.parse_clause())
        self.consume("RBRACE")
        return offered

    def parse_clause(self) -> tuple[ast.Action, ...]:
        actors = self.parse_parties()
        self.consume("MAY")
        choices = []
        if self.match("LBRACE"):
            while not self.at("RBRACE"):
                choices.append(self.parse_choice())
            self.consume("RBRACE")
        else:
            choices.append(self.parse_choice())
        return actors.may(*choices)

    def parse_parties(self) -> ast.Party | ast.AnyOf:
        actors: ast.Party | ast.AnyOf = self.parse_party()
        while self.match("OR"):
            actors = actors | self.parse_party()
        return actors

    def parse_party(self) -> ast.Party:
        tok = self.consume("IDENT")
        if tok.value not in self.parties:
            raise self.error(f"unknown party: {tok.value}", tok)
        return self.parties[tok.value]

    def parse_choice(self) -> dsl.Choice:
        label = self.consume("STRING").value[1:-1]
        guard = self.parse_guard()
        self.consume("LBRACE")
        self.scopes.append({})
        try:
            effects, continuation = self.parse_body()
        finally:
            self.scopes.pop()
        self.consume("RBRACE")
        return dsl.given_that(label, guard, *effects, then=continuation)

    def parse_guard(self) -> ast.Guard:
        if self.match("ANYTIME"):
            return ast.Anytime()
        if self.match("AFTER"):
            return ast.After(at=self.parse_date_ref())
        if self.match("BEFORE"):
            return ast.Before(at=self.parse_date_ref())
        raise self.error(f"expected a guard, got {self.peek().type}")

    def parse_body(self) -> tuple[list[ast.Obligation], ast.Arrangement]:
        effects: list[ast.Obligation] = []
        while True:
            if self.at("LET"):
                self.parse_let()
            elif self.at("IDENT") and self.peek(1).type == "GIVES":
                effects.append(self.parse_gives())
            else:
                break

        if self.at("NEXT"):
            return effects, self.parse_next()
        if self.at("ZERO", "ACTIONS", "ROLLOUT"):
            return effects, self.parse_arrangement()
        return effects, dsl.zero

    def parse_gives(self) -> ast.Obligation:
        payer = self.parse_party()
        self.consume("GIVES")
        payee = self.parse_party()
        amount = self.parse_expr()
        currency = self.parse_currency()
        return payer.gives(payee, amount, currency)

    def parse_next(self) -> ast.Next:
        self.consume("NEXT")
        self.consume("LPAREN")
        assignments = self._parse_assignments()
        self.consume("RPAREN")
        return ast.Next(assignments=assignments)

    def parse_rollout(self) -> ast.Arrangement:
        self.consume("ROLLOUT")
        start_tok = self.peek()
        start = self._parse_date()
        self.consume("TO")
        end = self._parse_date()
        freq_tok = self.consume("IDENT")
        frequency = self.FREQUENCIES.get(freq_tok.value.lower())
        if frequency is None:
            raise self.error(f"unknown frequency: {freq_tok.value}", freq_tok)

        variables: dict[str, ast.Expr] = {}
        if self.match("WITH"):
            self.consume("LPAREN")
            variables = self._parse_assignments()
            self.consume("RPAREN")

        self.consume("LBRACE")
        body = self.parse_arrangement()
        self.consume("RBRACE")

        if end <= start:
            raise self.error(f"rollout ends ({end}) before it starts ({start})", start_tok)
        return dsl.roll_out(start, end, frequency, body, variables)

    def _parse_assignments(self) -> dict[str, ast.Expr]:
        assignments: dict[str, ast.Expr] = {}
        if self.at("RPAREN"):
            return assignments
        while True:
            tok = self.consume("IDENT")
            if tok.value in assignments:
                raise self.error(f"variable assigned twice: {tok.value}", tok)
            self.consume("EQUALS")
            assignments[tok.value] = self.parse_expr()
            if not self.match("COMMA"):
                return assignments

    # Dates and currencies

    def _parse_date(self) -> date:
        tok = self.consume("DATE")
        try:
            if "/" in tok.value:
                return datetime.strptime(tok.value, "%d/%m/%Y").date()
            return date.fromisoformat(tok.value)
        except ValueError:
            raise self.error(f"invalid date: {tok.value}", tok) from None

    def parse_date_ref(self) -> ast.DateRef:
        if self.match("START"):
            return "start"
        if self.match("END"):
            return "end"
        return self._parse_date()

    def parse_currency(self) -> ast.Currency:
        tok = self.consume("IDENT")
        try:
            return ast.Currency(tok.value)
        except ValueError:
            raise self.error(f"unknown currency: {tok.value}", tok) from None

    # Expressions

    def parse_expr(self) -> ast.Expr:
        return self.parse_add()

    def parse_add(self) -> ast.Expr:
        left = self.parse_mul()
        while tok := self.match("PLUS", "MINUS"):
            right = self.parse_mul()
            left = ast.BinOp(op="+" if tok.type == "PLUS" else "-", left=left, right=right)
        return left

    def parse_mul(self) -> ast.Expr:
        left = self.parse_unary()
        while tok := self.match("STAR", "SLASH"):
            right = self.parse_unary()
            left = ast.BinOp(op="*" if tok.type == "STAR" else "/", left=left, right=right)
        return left

    def parse_unary(self) -> ast.Expr:
        if self.match("MINUS"):
            return ast.UnaryOp(op="-", operand=self.parse_unary())
        return self.parse_postfix()

    def parse_postfix(self) -> ast.Expr:
        expr = self.parse_primary()
        while self.at("DOT"):
            self.consume("DOT")
            method = self.consume("IDENT")
            if method.value != "plus":
                raise self.error(f"unknown method: {method.value}", method)
            self.consume("LPAREN")
            self.consume("RPAREN")
            expr = expr.plus()
        return expr

    def parse_primary(self) -> ast.Expr:
        if tok := self.match("NUMBER"):
            return self._number(tok.value)
        if self.match("VARS"):
            self.consume("DOT")
            return ast.Var(name=self.consume("IDENT").value)
        if self.match("LPAREN"):
            expr = self.parse_expr()
            self.consume("RPAREN")
            return expr
        if self.at("IDENT"):
            if self.peek(1).type == "LPAREN":
                return self.parse_call()
            tok = self.consume("IDENT")
            for scope in reversed(self.scopes):
                if tok.value in scope:
                    return scope[tok.value]
            raise self.error(f"unknown name: {tok.value}", tok)

        raise self.error(f"unexpected token in expression: {self.peek().type}")

    def parse_call(self) -> ast.Expr:
        name_tok = self.consume("IDENT")
        func = name_tok.value
        self.consume("LPAREN")
        match func:
            case "libor":
                notional = self.parse_expr()
                self.consume("COMMA")
                start = self.parse_date_ref()
                self.consume("COMMA")
                end = self.parse_date_ref()
                expr = dsl.libor(notional, start, end)
            case "interest":
                notional = self.parse_expr()
                self.consume("COMMA")
                convention = self.consume("STRING").value[1:-1]
                self.consume("COMMA")
                rate = self.parse_expr()
                self.consume("COMMA")
                start = self.parse_date_ref()
                self.consume("COMMA")
                end = self.parse_date_ref()
                expr = dsl.interest(notional, convention, rate, start, end)
            case "fx":
                base = self.parse_currency()
                self.consume("COMMA")
                quote = self.parse_currency()
                expr = dsl.fx(base, quote)
            case "plus" | "max" | "min":
                args = [self.parse_expr()]
                while self.match("COMMA"):
                    args.append(self.parse_expr())
                if func == "plus" and len(args) != 1:
                    raise self.error("plus takes exactly one argument", name_tok)
                expr = ast.Call(func=func, args=tuple(args))
            case _:
                raise self.error(f"unknown function: {func}", name_tok)
        self.consume("RPAREN")
        return expr

    def _number(self, text: str) -> ast.Const:
        multiplier = Decimal(1)
        if text[-1] in self.MULTIPLIERS:
            multiplier = self.MULTIPLIERS[text[-1]]
            text = text[:-1]
        return ast.Const(value=Decimal(text) * multiplier)


def parse(source: str) -> ast.Arrangement:
    """Parse .ucl source into an arrangement."""
    lexer = Lexer(source)
    parser = Parser(lexer.tokens)
    return parser.parse_contract()


def parse_file(filepath: str | Path) -> ast.Arrangement:
    """Parse a .ucl file."""
    filepath = Path(filepath)
    return parse(filepath.read_text())

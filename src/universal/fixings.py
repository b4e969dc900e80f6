"""Observed market values and variable bindings, as portable data.

Fixings are what an evaluation environment is made of when it has to be
shared: every holder loading the same fixings evaluates the same amounts.

YAML format:
    variables:
      notional: 10000000
    fixings:
      - kind: libor
        dates: [2015-04-01, 2015-07-01]
        value: 0.0028
      - kind: fx
        params: [EUR, USD]
        value: 1.25
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator

from .expressions import DEFAULT_PRECISION, Environment, ObservableKey


def _exact(value):
    # floats from YAML go through their repr, never their binary expansion
    if isinstance(value, float):
        return str(value)
    return value


class Fixing(BaseModel):
    kind: str
    params: tuple[str, ...] = ()
    dates: tuple[date, ...] = ()
    value: Decimal

    @field_validator("value", mode="before")
    @classmethod
    def exact_value(cls, value):
        return _exact(value)

    def key(self) -> ObservableKey:
        return ObservableKey(kind=self.kind, params=self.params, dates=self.dates)


class Fixings(BaseModel):
    variables: dict[str, Decimal] = {}
    fixings: list[Fixing] = []

    @field_validator("variables", mode="before")
    @classmethod
    def exact_variables(cls, value):
        if isinstance(value, dict):
            return {k: _exact(v) for k, v in value.items()}
        return value

    def table(self) -> dict[ObservableKey, Decimal]:
        table: dict[ObservableKey, Decimal] = {}
        for fixing in self.fixings:
            key = fixing.key()
            if key in table and table[key] != fixing.value:
                raise ValueError(f"conflicting fixings for {key}: {table[key]} and {fixing.value}")
            table[key] = fixing.value
        return table

    def environment(self, precision: int = DEFAULT_PRECISION) -> Environment:
        return Environment(
            variables=dict(self.variables),
            resolver=self.table().get,
            precision=precision,
        )


def load_fixings(path: str | Path) -> Fixings:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return Fixings.model_validate(data)

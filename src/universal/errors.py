"""Error taxonomy for contract construction, amount evaluation and elections."""

from enum import Enum


class ContractError(Exception):
    pass


class ConstructionError(ContractError):
    """Raised while building a tree: duplicate labels, unbound variables, bad schedules."""


class EvalErrorKind(str, Enum):
    DIVISION_BY_ZERO = "division_by_zero"
    UNAVAILABLE_OBSERVABLE = "unavailable_observable"
    UNBOUND_VARIABLE = "unbound_variable"
    UNBOUND_DATE = "unbound_date"
    OVERFLOW = "overflow"
    INVALID_OPERATION = "invalid_operation"
    UNKNOWN_CONVENTION = "unknown_convention"
    UNKNOWN_FUNCTION = "unknown_function"


class EvalError(ContractError):
    """Amount evaluation failed. Never coerced to zero."""

    def __init__(self, kind: EvalErrorKind, detail: str):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


class ElectionErrorKind(str, Enum):
    NOT_ENABLED = "not_enabled"
    NOT_AUTHORIZED = "not_authorized"


class ElectionError(ContractError):
    def __init__(self, kind: ElectionErrorKind, label: str, actor: str):
        if kind is ElectionErrorKind.NOT_ENABLED:
            msg = f"no enabled action labelled {label!r}"
        else:
            msg = f"{actor} may not elect {label!r}"
        super().__init__(msg)
        self.kind = kind
        self.label = label
        self.actor = actor

"""Universal contracts: describe, serialize and evaluate multi-party financial contracts.

Pipeline: build a tree (Python DSL or .ucl source) -> hash/serialize -> elect actions.

Example:
    from datetime import date
    from universal import parse_file, elect, Fixings

    contract = parse_file("swaption.ucl")
    env = Fixings.model_validate(fixings_yaml).environment()
    result = elect(contract, "acmeCorp", "proceed", date(2015, 7, 2), env)
    for obligation in result.effects:
        print(obligation)
    contract = result.successor
"""

__version__ = "0.1.0"

from .ast import (
    Action,
    Actions,
    After,
    AnyOf,
    Anytime,
    Arrangement,
    Before,
    BinOp,
    Call,
    Const,
    Continue,
    Currency,
    DayCount,
    Expr,
    Guard,
    Next,
    Obligation,
    Observable,
    Party,
    PartySet,
    ResolvedObligation,
    RolloutSchedule,
    UnaryOp,
    Var,
    Zero,
)
from .errors import (
    ConstructionError,
    ContractError,
    ElectionError,
    ElectionErrorKind,
    EvalError,
    EvalErrorKind,
)
from .evaluator import Election, available_actions, elect
from .expressions import Environment, ObservableKey, evaluate
from .fixings import Fixing, Fixings, load_fixings
from .parser import Lexer, ParseError, Parser, parse, parse_file
from .rollout import expand
from .schedule import Frequency
from .serialization import content_hash, from_bytes, to_bytes
from .store import ArrangementStore, FetchRequest, FetchResponse, handle_fetch
from .temporal import holds, parse_date

__all__ = [
    # Parse
    "parse",
    "parse_file",
    "ParseError",
    "Lexer",
    "Parser",
    # AST
    "Arrangement",
    "Zero",
    "Actions",
    "Action",
    "Next",
    "Continue",
    "RolloutSchedule",
    "Frequency",
    "Party",
    "AnyOf",
    "PartySet",
    "Currency",
    "Obligation",
    "ResolvedObligation",
    "Guard",
    "Anytime",
    "Before",
    "After",
    "Expr",
    "Const",
    "Var",
    "Observable",
    "DayCount",
    "BinOp",
    "UnaryOp",
    "Call",
    # Evaluate
    "evaluate",
    "Environment",
    "ObservableKey",
    "Fixing",
    "Fixings",
    "load_fixings",
    "holds",
    "parse_date",
    "expand",
    "available_actions",
    "elect",
    "Election",
    # Errors
    "ContractError",
    "ConstructionError",
    "EvalError",
    "EvalErrorKind",
    "ElectionError",
    "ElectionErrorKind",
    # Serialize
    "to_bytes",
    "from_bytes",
    "content_hash",
    "ArrangementStore",
    "FetchRequest",
    "FetchResponse",
    "handle_fetch",
]

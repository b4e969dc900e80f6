"""Evaluator: which actions are enabled, and what electing one produces.

The arrangement tree is a state machine. Each state is a node; each
transition is an election of one enabled action by one of its actors.
elect() is a pure function of its arguments, so independent holders of the
same tree reach the same obligations and successor without coordinating.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict

from . import ast
from .errors import ConstructionError, ElectionError, ElectionErrorKind
from .expressions import Environment, evaluate
from .logging import get_election_logger
from .rollout import resolve_continue
from .temporal import holds

logger = get_election_logger(__name__)


class Election(BaseModel):
    """Outcome of an election: obligations to settle and the remaining contract."""

    model_config = ConfigDict(frozen=True)

    effects: tuple[ast.ResolvedObligation, ...]
    successor: ast.Arrangement


def available_actions(
    tree: ast.Arrangement, at: date, env: Environment | None = None
) -> tuple[ast.Action, ...]:
    """Actions whose guard holds at ``at``. Zero offers nothing."""
    match tree:
        case ast.Zero():
            return ()
        case ast.Actions(actions=actions):
            return tuple(a for a in actions if holds(a.guard, at))
        case ast.Next() | ast.Continue():
            raise ConstructionError(f"unresolved {tree.type} node cannot offer actions")
    raise TypeError(f"unknown arrangement type: {type(tree)}")


def successor_of(continuation: ast.Arrangement, env: Environment) -> ast.Arrangement:
    match continuation:
        case ast.Continue():
            return resolve_continue(continuation, env)
        case ast.Next():
            raise ConstructionError("next() used outside a rollout")
    return continuation


def elect(
    tree: ast.Arrangement,
    actor: ast.Party | str,
    label: str,
    at: date,
    env: Environment | None = None,
) -> Election:
    """Elect an enabled action on behalf of ``actor``.

    All effects and the successor are computed before anything is returned;
    an evaluation failure aborts the whole election.
    """
    env = env or Environment()
    if isinstance(actor, str):
        actor = ast.Party(name=actor)

    action = next((a for a in available_actions(tree, at, env) if a.label == label), None)
    if action is None:
        logger.info("election_rejected", label=label, actor=actor.name, at=at.isoformat(),
                    reason=ElectionErrorKind.NOT_ENABLED.value)
        raise ElectionError(ElectionErrorKind.NOT_ENABLED, label, actor.name)
    if not action.actors.includes(actor):
        logger.info("election_rejected", label=label, actor=actor.name, at=at.isoformat(),
                    reason=ElectionErrorKind.NOT_AUTHORIZED.value)
        raise ElectionError(ElectionErrorKind.NOT_AUTHORIZED, label, actor.name)

    effects = tuple(
        ast.ResolvedObligation(
            payer=o.payer,
            payee=o.payee,
            amount=evaluate(o.amount, env),
            currency=o.currency,
        )
        for o in action.effects
    )
    successor = successor_of(action.continuation, env)

    logger.info(
        "election",
        label=label,
        actor=actor.name,
        at=at.isoformat(),
        effects=len(effects),
        successor=successor.type,
    )
    return Election(effects=effects, successor=successor)

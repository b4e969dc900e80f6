"""Command line for contract files.

Usage:
    universal hash swaption.ucl
    universal actions swaption.ucl --at 02/07/2015
    universal elect swaption.ucl --actor acmeCorp --label proceed --at 02/07/2015 \\
        --fixings fixings.yaml --out successor.json

Contract files are .ucl source or canonical JSON (as written by --out).
"""

import argparse
import sys
from pathlib import Path

from . import ast
from .config import get_settings, load_settings, use_settings
from .errors import ContractError
from .evaluator import available_actions, elect
from .expressions import Environment
from .fixings import load_fixings
from .logging import configure_logging
from .parser import ParseError, parse_file
from .serialization import content_hash, from_bytes, to_bytes
from .temporal import parse_date


def load_contract(path: Path) -> ast.Arrangement:
    if path.suffix == ".json":
        return from_bytes(path.read_bytes())
    return parse_file(path)


def describe(action: ast.Action) -> str:
    guard = action.guard.type
    if isinstance(action.guard, (ast.Before, ast.After)):
        guard = f"{guard} {action.guard.at}"
    return f"{action.label:24s} {str(action.actors):32s} {guard}"


def cmd_hash(args) -> int:
    print(content_hash(load_contract(args.file)))
    return 0


def cmd_actions(args) -> int:
    tree = load_contract(args.file)
    at = parse_date(args.at)
    offered = available_actions(tree, at)
    if not offered:
        print("  (no actions available)")
    for action in offered:
        print(f"  {describe(action)}")
    return 0


def cmd_elect(args) -> int:
    settings = get_settings()
    tree = load_contract(args.file)
    if args.fixings:
        env = load_fixings(args.fixings).environment(precision=settings.precision)
    else:
        env = Environment(precision=settings.precision)

    result = elect(tree, args.actor, args.label, parse_date(args.at), env)
    for effect in result.effects:
        print(f"  {effect}")
    print(f"  successor: {result.successor.type} {content_hash(result.successor)}")
    if args.out:
        args.out.write_bytes(to_bytes(result.successor))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="universal", description="Evaluate contract files")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("hash", help="Print the content hash of a contract")
    p.add_argument("file", type=Path)
    p.set_defaults(func=cmd_hash)

    p = sub.add_parser("actions", help="List actions available at a date")
    p.add_argument("file", type=Path)
    p.add_argument("--at", required=True, help="Reference date (dd/mm/yyyy)")
    p.set_defaults(func=cmd_actions)

    p = sub.add_parser("elect", help="Elect an action and print the resulting obligations")
    p.add_argument("file", type=Path)
    p.add_argument("--actor", required=True)
    p.add_argument("--label", required=True)
    p.add_argument("--at", required=True, help="Reference date (dd/mm/yyyy)")
    p.add_argument("--fixings", type=Path, default=None, help="YAML fixings file")
    p.add_argument("--out", type=Path, default=None, help="Write the successor as JSON")
    p.set_defaults(func=cmd_elect)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.config is not None:
        use_settings(load_settings(args.config))
    settings = get_settings()
    configure_logging(level=settings.log_level, format_json=settings.log_json)

    try:
        return args.func(args)
    except (ContractError, ParseError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

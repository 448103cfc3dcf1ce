"""CLI interface: fetch, formats, search, profiles. Results are printed as JSON."""

import argparse
import asyncio
import json
import sys
from typing import Any

from arivu.contracts.federated_v1 import MergeMode, ResolvedAction
from arivu.core.bootstrap import Runtime, build_runtime
from arivu.core.errors import ArivuError, ProfileNotFoundError
from arivu.core.logger import logger
from arivu.observability import flush


class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    CYAN = "\033[36m"


def colorize(text: str, *colors: str) -> str:
    if not sys.stderr.isatty():
        return text
    return f"{''.join(colors)}{text}{Colors.RESET}"


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def emit(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def choose_action(
    actions: list[ResolvedAction],
    pick: int | None = None,
    interactive: bool | None = None,
) -> ResolvedAction:
    """Host-side disambiguation: --pick N, a numbered prompt on a TTY, else first match."""
    if pick is not None:
        if not 1 <= pick <= len(actions):
            raise ValueError(f"--pick must be between 1 and {len(actions)}")
        return actions[pick - 1]
    if interactive is None:
        interactive = sys.stdin.isatty()
    if len(actions) == 1 or not interactive:
        return actions[0]

    sys.stderr.write(colorize("Multiple matches:\n", Colors.BOLD))
    for i, action in enumerate(actions, start=1):
        sys.stderr.write(
            f"  {colorize(str(i), Colors.CYAN)}. {action.adapter}.{action.operation}"
            f"  {colorize(action.description, Colors.DIM)}\n"
        )
    while True:
        try:
            answer = input(f"Select [1-{len(actions)}] (default 1): ").strip()
        except EOFError:
            return actions[0]
        if not answer:
            return actions[0]
        if answer.isdigit() and 1 <= int(answer) <= len(actions):
            return actions[int(answer) - 1]
        sys.stderr.write(colorize("  Invalid choice\n", Colors.RED))


async def cmd_fetch(runtime: Runtime, args: argparse.Namespace) -> int:
    actions = runtime.resolver.resolve_all(args.input)
    logger.resolved(args.input, [a.pattern_id for a in actions])
    if not actions:
        emit({"input": args.input, "matches": []})
        sys.stderr.write("No adapter recognizes this input\n")
        return 1
    if args.dry_run:
        emit({"input": args.input, "matches": [a.model_dump(mode="json") for a in actions]})
        return 0

    action = choose_action(actions, pick=args.pick)
    payload = await runtime.dispatcher.call(action.adapter, action.operation, action.arguments)
    emit({"action": action.model_dump(mode="json"), "result": payload})
    return 0


async def cmd_formats(runtime: Runtime, args: argparse.Namespace) -> int:
    emit([p.model_dump(mode="json") for p in runtime.resolver.list_patterns()])
    return 0


async def cmd_search(runtime: Runtime, args: argparse.Namespace) -> int:
    adapters = None
    if args.adapters:
        adapters = [a.strip() for a in args.adapters.split(",") if a.strip()]
    result = await runtime.engine.search(
        args.query,
        profile=args.profile,
        adapters=adapters,
        merge_mode=args.merge,
        limit=args.limit,
    )
    emit(result.to_json_dict())
    return 3 if result.all_failed() else 0


async def cmd_profiles(runtime: Runtime, args: argparse.Namespace) -> int:
    store = runtime.profiles
    builtin = set(store.list_builtin_names())
    user = store.load_all()

    if args.action == "list":
        emit(
            [
                {
                    "name": p.name,
                    "description": p.description,
                    "extends": p.extends,
                    "origin": "user" if p.name in user else "builtin",
                    "overrides_builtin": p.name in user and p.name in builtin,
                }
                for p in store.list_all()
            ]
        )
        return 0

    if not args.name:
        raise ValueError(f"'profiles {args.action}' needs a profile name")

    if args.action == "show":
        profile = store.load(args.name)
        if profile is None:
            raise ProfileNotFoundError(args.name, sorted(builtin | set(user)))
        emit(profile.model_dump(mode="json", exclude_unset=True))
        return 0
    if args.action == "resolve":
        emit(store.resolve_profile(args.name).model_dump(mode="json"))
        return 0
    # delete
    deleted = store.delete(args.name)
    emit({"name": args.name, "deleted": deleted})
    return 0 if deleted else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arivu",
        description="Resolve inputs to adapter calls and run federated searches.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Resolve a URL/ID/shorthand and call the matching adapter")
    fetch.add_argument("input")
    fetch.add_argument("--pick", type=int, default=None, help="Use the Nth match (1-based)")
    fetch.add_argument(
        "--dry-run",
        action="store_true",
        help="Print every match without calling an adapter",
    )
    fetch.set_defaults(handler=cmd_fetch)

    formats = sub.add_parser("formats", help="List recognized input formats")
    formats.set_defaults(handler=cmd_formats)

    search = sub.add_parser("search", help="Federated search across a profile's adapters")
    search.add_argument("query")
    target = search.add_mutually_exclusive_group()
    target.add_argument("--profile", "-p", default=None, help="Profile name")
    target.add_argument("--adapters", "-a", default=None, help="Comma-separated adapter list")
    search.add_argument(
        "--merge",
        choices=[m.value for m in MergeMode],
        default=None,
        help="Override the profile's merge mode",
    )
    search.add_argument("--limit", type=positive_int, default=None, help="Results per adapter")
    search.set_defaults(handler=cmd_search)

    profiles = sub.add_parser("profiles", help="Inspect search profiles")
    profiles.add_argument("action", choices=["list", "show", "resolve", "delete"])
    profiles.add_argument("name", nargs="?")
    profiles.set_defaults(handler=cmd_profiles)

    return parser


async def run_cli(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        runtime = build_runtime()
    except ArivuError as e:
        sys.stderr.write(colorize(f"Error: {e}\n", Colors.RED))
        return 2
    try:
        return await args.handler(runtime, args)
    except (ArivuError, ValueError) as e:
        logger.debug(f"CLI: {args.command} failed: {e}")
        sys.stderr.write(colorize(f"Error: {e}\n", Colors.RED))
        return 2
    finally:
        await runtime.close()
        flush()
        logger.close()


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(run_cli(argv))

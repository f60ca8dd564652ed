from __future__ import annotations

import argparse
import logging
import sys

from .core import TARGET_ALL, TOOL_NAME, BindFrameworkError
from .commands import (
    command_bake,
    command_generate,
    command_list_targets,
)


def add_path_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Optional JSON config with paths and extra targets.")
    parser.add_argument(
        "--input",
        help="Directory holding specification, override and typemap files (default: specifications).",
    )
    parser.add_argument("--docs", help="Directory holding documentation files (default: documentation).")
    parser.add_argument("--output", help="Directory receiving generated bindings (default: generated).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=TOOL_NAME,
        description="Bake versioned API specifications into C# bindings.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate bindings for one or more targets.")
    add_path_arguments(generate)
    generate.add_argument(
        "--target",
        action="append",
        help=f"Target to generate; repeatable. '{TARGET_ALL}' or no value selects every target.",
    )
    generate.add_argument("--jobs", type=int, help="Maximum concurrent target runs.")
    generate.add_argument("--dry-run", action="store_true", help="Do not write files; only compute outputs.")
    generate.add_argument("--check", action="store_true", help="Fail when generated bindings differ from files on disk.")
    generate.add_argument("--print-diff", action="store_true", help="Print unified diffs for changed bindings.")
    generate.add_argument("--emit-obsolete", action="store_true", help="Include obsolete functions and enums.")
    generate.add_argument("--report-json", help="Write aggregate generation report as JSON.")
    generate.set_defaults(func=command_generate)

    list_targets = sub.add_parser("list-targets", help="List built-in and configured targets.")
    list_targets.add_argument("--config", help="Optional JSON config with extra targets.")
    list_targets.add_argument("--verbose", action="store_true", help="Show profile, versions and output per target.")
    list_targets.set_defaults(func=command_list_targets)

    bake = sub.add_parser("bake", help="Dump the resolved model of one target as JSON.")
    add_path_arguments(bake)
    bake.add_argument("--target", required=True, help="Target to bake.")
    bake.add_argument("--output-json", help="Write the model to this file instead of stdout.")
    bake.set_defaults(func=command_bake)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return int(args.func(args))
    except BindFrameworkError as exc:
        print(f"{TOOL_NAME} error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

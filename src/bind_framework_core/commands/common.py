from __future__ import annotations

import argparse

from ..core import *  # noqa: F401,F403


def run_configuration_from_args(args: argparse.Namespace, *, targets: list[str] | None = None) -> RunConfiguration:
    return build_run_configuration(
        config_path=Path(args.config).resolve() if args.config else None,
        input_path=args.input,
        documentation_path=args.docs,
        output_path=args.output,
        targets=targets if targets is not None else (args.target or []),
        max_workers=getattr(args, "jobs", None),
        dry_run=bool(getattr(args, "dry_run", False)),
        check=bool(getattr(args, "check", False)),
        emit_obsolete=True if getattr(args, "emit_obsolete", False) else None,
    )

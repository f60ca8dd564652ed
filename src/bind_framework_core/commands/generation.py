from __future__ import annotations

import argparse

from ..core import *  # noqa: F401,F403
from .common import run_configuration_from_args


def print_target_result(name: str, result: dict[str, Any], print_diff: bool) -> None:
    artifact = result["artifact"]
    print(
        f"[{name}] generate: profile={result['profile']} versions={','.join(result['versions'])} "
        f"functions={result['function_count']} overloads={result['overload_count']} "
        f"bindings={artifact['status']}"
    )
    if print_diff and artifact["diff"]:
        print(artifact["diff"])


def command_generate(args: argparse.Namespace) -> int:
    config = run_configuration_from_args(args)
    aggregate: dict[str, Any] = {
        "tool": {"name": TOOL_NAME, "version": TOOL_VERSION},
        "schema_version": REPORT_SCHEMA_VERSION,
        "generated_at_utc": utc_timestamp_now(),
        "targets": [settings.name for settings in config.targets],
        "results": {},
        "failures": {},
    }

    failure: GenerationFailedError | None = None
    try:
        results = run_generation(config)
    except GenerationFailedError as exc:
        failure = exc
        results = exc.results

    exit_code = 0
    for name, result in results.items():
        print_target_result(name, result, bool(args.print_diff))
        summary = dict(result)
        summary["artifact"] = {
            "path": result["artifact"]["path"],
            "status": result["artifact"]["status"],
        }
        aggregate["results"][name] = summary
        if args.check and result["has_drift"]:
            exit_code = 1

    if failure is not None:
        aggregate["failures"] = {
            name: f"{exc.__class__.__name__}: {exc}" for name, exc in sorted(failure.failures.items())
        }

    if args.report_json:
        write_json(Path(args.report_json).resolve(), aggregate)
    if failure is not None:
        raise failure
    return exit_code

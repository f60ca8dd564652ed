from __future__ import annotations

import argparse

from ..core import *  # noqa: F401,F403


def command_list_targets(args: argparse.Namespace) -> int:
    payload = load_config_payload(Path(args.config).resolve() if args.config else None)
    targets = available_targets(payload)

    for name in sorted(targets):
        settings = targets[name]
        base = f" base={settings.base_profile}" if settings.base_profile else ""
        versions = ",".join(settings.versions)
        if args.verbose:
            print(f"{name}: kind={settings.kind.value} profile={settings.profile}{base} versions={versions} output={settings.output}")
        else:
            print(name)
    return 0

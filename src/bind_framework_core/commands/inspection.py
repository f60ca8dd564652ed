from __future__ import annotations

import argparse
import json

from ..core import *  # noqa: F401,F403
from .common import run_configuration_from_args


def command_bake(args: argparse.Namespace) -> int:
    config = run_configuration_from_args(args, targets=[args.target])
    settings = config.targets[0]
    baked = bake_target(config, settings, ResourceCache())
    payload = baked.as_dict()

    if args.output_json:
        write_json(Path(args.output_json).resolve(), payload)
        print(f"[{settings.name}] bake: wrote {args.output_json}")
    else:
        print(json.dumps(payload, indent=2))
    return 0

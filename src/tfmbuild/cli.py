"""Command-line entry point.

Usage:
    tfmbuild run [--out-dir DIR] [--no-wait] [--jobs N] [--format cargo|json]
    tfmbuild layout [--out-dir DIR]
    tfmbuild profile
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from dataclasses import replace

from tfmbuild.builders import CMakeBuilder
from tfmbuild.config import PipelineConfig
from tfmbuild.errors import TfmBuildError, ValidationError
from tfmbuild.observability import StructuredLogger
from tfmbuild.pipeline import Pipeline


def _config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig.from_env(os.environ, out_dir=args.out_dir)


def cmd_run(args: argparse.Namespace) -> int:
    config = _config(args)
    if args.no_wait:
        config = replace(config, wait_for_lock=False)
    logger = StructuredLogger(echo=sys.stderr)
    pipeline = Pipeline(
        config=config,
        logger=logger,
        builder=CMakeBuilder(tool=config.cmake, jobs=args.jobs, logger=logger),
    )
    result = pipeline.run()
    plan = result.link_plan
    if plan is None:
        raise ValidationError(
            "Pipeline finished without a link plan.",
            context={"operation": "run", "state": result.state.value},
        )
    if args.format == "json":
        sys.stdout.write(plan.to_json())
    else:
        for line in plan.cargo_directives():
            print(line)
    return 0


def cmd_layout(args: argparse.Namespace) -> int:
    print(json.dumps(_config(args).layout.as_dict(), indent=2, sort_keys=True))
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    sys.stdout.write(PipelineConfig(out_dir=".").profile.to_json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfmbuild",
        description="Provision, build and bind the TF-M secure firmware",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run the full provisioning and build pipeline")
    run_p.add_argument("--out-dir", default=None, help="Output root (defaults to $OUT_DIR)")
    run_p.add_argument(
        "--no-wait",
        action="store_true",
        help="Fail instead of waiting when another run holds the lock",
    )
    run_p.add_argument("--jobs", type=int, default=None, help="Parallel build jobs")
    run_p.add_argument("--format", choices=("cargo", "json"), default="cargo")
    run_p.set_defaults(handler=cmd_run)

    layout_p = sub.add_parser("layout", help="Print the output directory layout")
    layout_p.add_argument("--out-dir", default=None, help="Output root (defaults to $OUT_DIR)")
    layout_p.set_defaults(handler=cmd_layout)

    profile_p = sub.add_parser("profile", help="Print the build profile and its digest")
    profile_p.set_defaults(handler=cmd_profile)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except TfmBuildError as exc:
        step = f" during {exc.step.value}" if exc.step is not None else ""
        print(f"error[{exc.code}]{step}: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

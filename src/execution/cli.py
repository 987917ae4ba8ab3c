"""CLI entry point for implementation-plan runs.

Usage:
  python -m src.execution inputs [--config FILE]
  python -m src.execution run <stage1_run_id> <stage2_run_id> [--mock] [--model sonnet] [--config FILE]
  python -m src.execution show <run_dir>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

POLL_INTERVAL_SECONDS = 0.5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Implementation-plan pipeline CLI")
    parser.add_argument("--config", default=None, help="YAML file with RunConfig overrides")
    parser.add_argument("--output-root", default=None, help="Root holding the pipe-1/2/3 directories")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("inputs", help="List stage-one/stage-two run pairs ready for planning")

    run_parser = subparsers.add_parser("run", help="Generate a roadmap and prompt pack")
    run_parser.add_argument("stage1_run_id", help="Stage-one (codebase scan) run ID")
    run_parser.add_argument("stage2_run_id", help="Stage-two (impact analysis) run ID")
    run_parser.add_argument("--mock", action="store_true", help="Use canned responses instead of Claude")
    run_parser.add_argument("--model", default=None, help="Claude model (default: from config)")

    show_parser = subparsers.add_parser("show", help="Print a completed run's roadmap")
    show_parser.add_argument("run_dir", help="Output directory of a completed run")

    return parser


def load_config(args):
    from src.execution.config import RunConfig

    config = RunConfig.from_yaml(Path(args.config)) if args.config else RunConfig()
    config = RunConfig.from_env(config)
    if args.output_root:
        config.output_root = Path(args.output_root)
    if getattr(args, "model", None):
        config.model = args.model
    return config


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "inputs":
        _inputs_command(config)
    elif args.command == "run":
        asyncio.run(_run_command(args, config))
    elif args.command == "show":
        _show_command(args)


def _inputs_command(config) -> None:
    from src.planning.loader import list_available_inputs

    pairs = list_available_inputs(config.stage1_root, config.stage2_root)
    if not pairs:
        print(f"No impact analyses found under {config.stage2_root}")
        return
    for pair in pairs:
        project = pair.project_id or "unknown project"
        scanned = f", scanned {pair.scanned_at}" if pair.scanned_at else ""
        print(f"{pair.stage1_run_id}  {pair.stage2_run_id}  ({project}{scanned})")


async def _run_command(args, config) -> None:
    from src.execution.convenience import create_service

    service = create_service(config, mock=args.mock)
    try:
        run_id = await service.create_run(args.stage1_run_id, args.stage2_run_id)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Run {run_id} started")
    last_status = None
    while True:
        report = await service.get_status(run_id)
        if report.status != last_status:
            print(f"  Status: {report.status.value}")
            last_status = report.status
        if report.status.is_terminal:
            break
        await asyncio.sleep(POLL_INTERVAL_SECONDS)

    session = await service.wait_for(run_id)
    if report.error:
        print(f"\nRun {run_id}: FAILED", file=sys.stderr)
        print(report.error, file=sys.stderr)
        sys.exit(1)

    steps = await service.get_steps(run_id)
    print(f"\nRun {run_id}: COMPLETE")
    print(f"Subtasks: {report.step_count}  Prompts: {report.prompt_count}")
    print(f"Estimated duration: {steps.total_duration_hours:g} hours")
    for risk in session.roadmap.risks:
        print(f"  [{risk.severity.upper()}] {risk.risk}")
    print(f"Output: {session.output_dir}")


def _show_command(args) -> None:
    from src.execution.artifacts import ROADMAP_FILE, read_roadmap

    path = Path(args.run_dir) / ROADMAP_FILE
    try:
        roadmap = read_roadmap(path)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: could not read {path}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Roadmap generated {roadmap.generated_at}")
    for index, step in enumerate(roadmap.plan, start=1):
        deps = f" (after {', '.join(step.depends_on_step_ids)})" if step.depends_on_step_ids else ""
        print(f"{index:>2}. [{step.area.value}/{step.kind.value}] {step.title} - {step.duration_hours:g}h{deps}")
    print(f"Total: {roadmap.total_duration_hours:g} hours")
    for note in roadmap.notes:
        print(f"  {note}")


if __name__ == "__main__":
    main()

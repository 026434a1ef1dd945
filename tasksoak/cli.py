"""
Command line entry point: ``tasksoak``.

Runs one scenario against a task resource and prints a per-round summary
table.  Exit codes follow a three-state convention so CI can distinguish
"the backend is inconsistent" from "the harness could not run":

- ``0`` -- every round passed
- ``1`` -- a consistency violation was detected
- ``2`` -- configuration, transport or other harness failure

Usage examples::

    tasksoak --base-url http://localhost:3000/api/tasks
    tasksoak --scenario priority --rounds 5 --steps 200 --seed 42
    tasksoak --config soak.yml --env development
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tasksoak import configure_logging
from tasksoak.config import load_settings
from tasksoak.errors import HarnessError
from tasksoak.runner import RunReport, SoakRunner
from tasksoak.scenarios import SCENARIOS

EXIT_PASS = 0
EXIT_VIOLATION = 1
EXIT_SCRIPT_ERROR = 2

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for a soak run."""
    parser = argparse.ArgumentParser(
        prog="tasksoak",
        description="Randomized soak test for a task-management HTTP API.",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--env", help="Settings profile (development, testing, soak)")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), help="Scenario to run")
    parser.add_argument("--base-url", help="URL of the task collection, e.g. http://host/api/tasks")
    parser.add_argument("--rounds", type=int, help="Number of rounds")
    parser.add_argument("--steps", dest="steps_per_round", type=int, help="Effective steps per round")
    parser.add_argument("--log-path", type=Path, help="Run log file")
    parser.add_argument("--seed", type=int, help="Random seed for a reproducible run")
    parser.add_argument(
        "--mode",
        dest="selection_mode",
        choices=["single", "layered"],
        help="Action selection mode (defaults to the scenario's)",
    )
    parser.add_argument(
        "--check-read-stability",
        action="store_true",
        default=None,
        help="List twice per check and require the same id order",
    )
    parser.add_argument(
        "--strict-reset",
        action="store_true",
        default=None,
        help="Fail the run when tasks survive the reset at round start",
    )
    parser.add_argument("--log-level", default="INFO", help="Console log level")
    return parser.parse_args(argv)


def _print_summary(report: RunReport) -> None:
    """Print a human-readable results table to stdout for CI logs."""
    print(f"Soak run: {report.scenario}")
    print("-" * 60)
    print(f"{'Round':<8}{'Steps':>8}{'Skipped':>10}{'Inserted':>10}{'Deleted':>10}{'Seconds':>14}")
    print("-" * 60)
    for result in report.rounds:
        print(
            f"{result.number:<8}{result.steps:>8}{result.skipped_selections:>10}"
            f"{result.inserted:>10}{result.deleted:>10}{result.duration:>14.2f}"
        )
    print("-" * 60)
    if report.violation is not None:
        for line in report.violation.report_lines():
            print(line)
    print(f"Overall: {'PASS' if report.passed else 'FAIL'}")


def main(argv: list[str] | None = None) -> int:
    """
    Entry point: resolve settings, run the soak, print the summary.

    Returns:
        ``EXIT_PASS``, ``EXIT_VIOLATION`` or ``EXIT_SCRIPT_ERROR``.
    """
    args = parse_args(argv)

    try:
        configure_logging(args.log_level)
        settings = load_settings(
            args.config,
            env=args.env,
            scenario=args.scenario,
            base_url=args.base_url,
            rounds=args.rounds,
            steps_per_round=args.steps_per_round,
            log_path=args.log_path,
            seed=args.seed,
            selection_mode=args.selection_mode,
            check_read_stability=args.check_read_stability,
            strict_reset=args.strict_reset,
        )
        runner = SoakRunner.from_settings(settings)
        try:
            report = runner.run()
        finally:
            runner.client.close()
            runner.run_log.close()
    except (HarnessError, ValueError) as exc:
        print(f"Soak run failed: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    _print_summary(report)
    return EXIT_PASS if report.passed else EXIT_VIOLATION


if __name__ == "__main__":
    raise SystemExit(main())

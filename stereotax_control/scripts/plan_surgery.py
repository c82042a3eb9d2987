#!/usr/bin/env python3
"""
Plan Surgery Script.

Generate injection, cannula and drilling programs from a YAML plan.

Usage:
    python -m stereotax_control.scripts.plan_surgery --plan plan.yaml
    python -m stereotax_control.scripts.plan_surgery --plan plan.yaml --dry-run
    stereotax-plan --plan plan.yaml --output-dir Output --log-level DEBUG

Plan file format:
    procedures:
      - type: injection
        AP: 1.7
        ML: 1
        DV: 7.3
        name: NAc
      - type: cannula
        AP: -4.5
        ML: 0
        DV: 3.25
        angle: 15
        overshoot: 0.3
        name: DRN
    drill:
      skullThickness: 0.8
      depthPerCycle: 0.4
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from stereotax_control.configs.loader import ConfigError, load_config
from stereotax_control.gcode.vm import dry_run
from stereotax_control.planning.params import InvalidParameter
from stereotax_control.session import ProgramResult, StereotaxSession
from stereotax_control.utils.fs import ProgramWriteError, load_yaml
from stereotax_control.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

PROCEDURE_TYPES = ("injection", "cannula")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_WRITE_FAILED = 2


def load_plan(path: str | Path) -> dict[str, Any]:
    """Load and shape-check a plan file.

    Raises
    ------
    InvalidParameter
        If the file is not a mapping with a ``procedures`` list.
    """
    data = load_yaml(path)
    if not isinstance(data, dict):
        raise InvalidParameter(f"Plan {path} must be a mapping")
    procedures = data.get("procedures") or []
    if not isinstance(procedures, list):
        raise InvalidParameter("'procedures' must be a list")
    for i, entry in enumerate(procedures):
        if not isinstance(entry, dict):
            raise InvalidParameter(f"procedures[{i}] must be a mapping")
        if entry.get("type") not in PROCEDURE_TYPES:
            raise InvalidParameter(
                f"procedures[{i}].type must be one of {PROCEDURE_TYPES}, "
                f"got {entry.get('type')!r}"
            )
    drill = data.get("drill")
    if drill is not None and not isinstance(drill, dict):
        raise InvalidParameter("'drill' must be a mapping")
    return data


def run_plan(session: StereotaxSession, plan: dict[str, Any]) -> list[ProgramResult]:
    """Execute every entry of *plan* in order; drill last."""
    results = []
    for entry in plan.get("procedures") or []:
        params = {k: v for k, v in entry.items() if k != "type"}
        call = session.injection if entry["type"] == "injection" else session.cannula
        results.append(call(**params))
    if plan.get("drill") is not None:
        results.append(session.drill(**plan["drill"]))
    return results


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate stereotaxic robot programs from a plan file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--plan",
        "-p",
        type=str,
        required=True,
        help="Plan file (YAML)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        help="Output directory (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Replay every generated program and report time estimates",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        setup_logging(log_level=args.log_level or "INFO", context={"app": "plan"})
        logger.error("Configuration error: %s", exc)
        return EXIT_INVALID

    setup_logging(
        log_level=args.log_level or config.logging.level,
        log_file=config.logging.file,
        json=config.logging.json,
        context={"app": "plan"},
    )

    try:
        plan = load_plan(args.plan)
        session = StereotaxSession(config, output_dir=args.output_dir)
        results = run_plan(session, plan)
    except (InvalidParameter, FileNotFoundError, yaml.YAMLError) as exc:
        logger.error("Invalid plan: %s", exc)
        return EXIT_INVALID
    except ProgramWriteError as exc:
        logger.error("Write failed: %s", exc)
        return EXIT_WRITE_FAILED

    if args.dry_run:
        for result in results:
            report = dry_run(result.text, config)
            logger.info(
                "%s: %.1f s (%.1f s dwelling), %d operator halts",
                result.path.name,
                report.time_estimate_s,
                report.dwell_time_s,
                report.halts,
            )
            for violation in report.violations:
                logger.warning("%s: %s", result.path.name, violation)

    logger.info("Wrote %d program(s) to %s", len(results), session.output_dir)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

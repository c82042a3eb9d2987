"""Procedure composer -- one solved insertion to one standalone program.

Both procedures start the same way: re-zero at the skull reference
point, rise to the safe travel height, travel over the hole, touch the
skull and wait.  They differ in what happens below the surface:

Injection
    Go past the target by the overshoot distance, wait, come back up to
    the target, halt for the operator (the injection itself), then
    retract through the hole and rise to travel height.

Cannula
    One move straight to the pulled-back target, restore the travel
    feed, halt.  The cannula stays in place, so there is no retraction.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from stereotax_control.configs.loader import MachineConfig
from stereotax_control.job_ir.operations import (
    Block,
    Dwell,
    Halt,
    Move,
    Program,
    ResetPosition,
    SetFeed,
)
from stereotax_control.planning.trajectory import InsertionKind, InsertionRecord

logger = logging.getLogger(__name__)

UNFORMATTABLE_ROW = "<row could not be formatted>"


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


def created_line(config: MachineConfig, created: date | None = None) -> str:
    created = created or date.today()
    return f"Created {created.strftime(config.program.date_format)}"


def table_lines(
    title: str,
    rows: Iterable[tuple[str, float, float, float, float]],
) -> list[str]:
    """Fixed-width target table: label, ML, AP, DV, angle.

    A row that cannot be formatted is logged and replaced by a
    placeholder; the table is documentation only.
    """
    lines = [
        f"{title:<13.13} {' ML':<7.4} {' AP':<7.4} {' DV':<7.4} {' Angle':.9}",
        f"{'---------':<13.13} {'----':<7.4} {'----':<7.4} {'----':<7.4} {'-------':.9}",
    ]
    for row in rows:
        try:
            label, ml, ap, dv, angle = row
            lines.append(
                f"{label:<13.13} {ml:<+7.4g} {ap:<+7.4g} {dv:<+7.4g} {angle:+.4g}"
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping table row %r: %s", row, exc)
            lines.append(UNFORMATTABLE_ROW)
    return [line.rstrip() for line in lines]


def artifact_stem(record: InsertionRecord) -> str:
    """``<label>_Injection`` for both procedure kinds."""
    return f"{record.label}_Injection"


def _approach(record: InsertionRecord, config: MachineConfig, program: Program) -> Block:
    """Prelude shared by injection and cannula, up to touching the skull."""
    m = config.motion
    program.block().add(ResetPosition(0.0, 0.0, 0.0)).add(
        Move(z=m.safe_height_mm, feed=m.travel_feed_mm_min)
    )
    block = program.block()
    block.add(Move(x=record.hole_ml, y=record.ap))
    block.add(Move(z=0.0))
    block.add(Dwell(record.dwell_before_start))
    return block


# ---------------------------------------------------------------------------
# Composers
# ---------------------------------------------------------------------------


def compose_injection(
    record: InsertionRecord,
    config: MachineConfig,
    created: date | None = None,
) -> Program:
    """Build the standalone program for an injection record."""
    if record.kind is not InsertionKind.INJECTION:
        raise ValueError(f"Expected an injection record, got {record.kind.value}")

    program = Program(
        stem=artifact_stem(record),
        header=[
            created_line(config, created),
            f"Inject with {record.overshoot:g} mm overshoot",
            *table_lines(
                "Injection",
                [(record.label, record.ml, record.ap, record.dv, record.angle)],
            ),
        ],
    )
    block = _approach(record, config, program)
    block.add(
        Move(
            x=record.overshoot_ml,
            y=record.ap,
            z=-record.overshoot_dv,
            feed=record.speed,
        )
    )
    block.add(Dwell(record.dwell_after_overshoot))
    block.add(Move(x=record.target_ml, y=record.ap, z=-record.target_dv))
    block.add(Halt())
    block.add(Move(x=record.hole_ml, y=record.ap, z=0.0, feed=record.speed))
    block.add(
        Move(z=config.motion.safe_height_mm, feed=config.motion.travel_feed_mm_min)
    )
    logger.debug("Composed injection %s", record.label)
    return program


def compose_cannula(
    record: InsertionRecord,
    config: MachineConfig,
    created: date | None = None,
) -> Program:
    """Build the standalone program for a cannula record.

    The header table lists the requested target (where the needle tip
    ends up), not the cannula tip.
    """
    if record.kind is not InsertionKind.CANNULA:
        raise ValueError(f"Expected a cannula record, got {record.kind.value}")

    program = Program(
        stem=artifact_stem(record),
        header=[
            created_line(config, created),
            f"Insert cannula for {record.overshoot:g} mm needle",
            *table_lines(
                "Cannula",
                [
                    (
                        record.label,
                        record.overshoot_ml,
                        record.ap,
                        record.overshoot_dv,
                        record.angle,
                    )
                ],
            ),
        ],
    )
    block = _approach(record, config, program)
    block.add(
        Move(
            x=record.target_ml,
            y=record.ap,
            z=-record.target_dv,
            feed=record.speed,
        )
    )
    block.add(SetFeed(config.motion.travel_feed_mm_min))
    block.add(Halt())
    logger.debug("Composed cannula %s", record.label)
    return program


def compose_procedure(
    record: InsertionRecord,
    config: MachineConfig,
    created: date | None = None,
) -> Program:
    """Dispatch on ``record.kind``."""
    if record.kind is InsertionKind.INJECTION:
        return compose_injection(record, config, created)
    return compose_cannula(record, config, created)

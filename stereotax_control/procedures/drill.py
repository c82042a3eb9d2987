"""Drill sequencer -- every registered hole in one combined program.

Holes are visited anterior to posterior, left to right within a row.
Each hole is drilled in cycles: pause, plunge one more increment, pause,
pull back to the surface to clear debris.  Cycling continues while one
more full increment would still stop short of the skull thickness; a
single terminal cycle then goes exactly to the full thickness.  The
terminal cycle always runs, so when the thickness is an exact multiple
of the increment its step is a full increment.

Per-hole state progression (logged at DEBUG)::

    APPROACHING -> TOUCHING_SURFACE -> CYCLIC_DRILL* -> TERMINAL_CYCLE
        -> RETRACTING -> HALTED_FOR_OPERATOR
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum, auto
from typing import Sequence

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
from stereotax_control.planning.params import DrillParams
from stereotax_control.planning.registry import drill_order_key
from stereotax_control.planning.trajectory import InsertionRecord
from stereotax_control.procedures.composer import created_line, table_lines

logger = logging.getLogger(__name__)

# Float drift below this never earns an extra cycle.
DEPTH_TOLERANCE_MM = 1e-9


class HoleState(Enum):
    """Drilling state of a single hole."""

    APPROACHING = auto()
    TOUCHING_SURFACE = auto()
    CYCLIC_DRILL = auto()
    TERMINAL_CYCLE = auto()
    RETRACTING = auto()
    HALTED_FOR_OPERATOR = auto()


def cycle_depths(skull_thickness: float, depth_per_cycle: float) -> list[float]:
    """Z depth reached by every cycle of one hole, terminal cycle last.

    Parameters
    ----------
    skull_thickness : float
        Total depth; sign ignored.
    depth_per_cycle : float
        Increment per cycle, > 0.

    Returns
    -------
    list[float]
        Non-positive Z values, strictly decreasing, last one equal to
        ``-abs(skull_thickness)``.
    """
    if depth_per_cycle <= 0:
        raise ValueError(f"depth_per_cycle must be > 0, got {depth_per_cycle}")
    bottom = -abs(skull_thickness)
    depths = []
    k = 1
    while -k * depth_per_cycle > bottom + DEPTH_TOLERANCE_MM:
        depths.append(-k * depth_per_cycle)
        k += 1
    depths.append(bottom)
    return depths


def holes_stem(records: Sequence[InsertionRecord]) -> str:
    """``<unique names joined by _>_Holes``."""
    names = sorted({r.name for r in records})
    return "_".join(names) + "_Holes"


def _drill_hole(
    record: InsertionRecord,
    params: DrillParams,
    config: MachineConfig,
    block: Block,
) -> None:
    m = config.motion
    state = HoleState.APPROACHING
    logger.debug("%s: %s", record.label, state.name)
    block.add(
        Move(x=record.hole_ml, y=record.ap, z=m.safe_height_mm, feed=m.travel_feed_mm_min)
    )
    block.add(SetFeed(params.speed))
    block.add(Dwell(params.dwell_before_start))

    state = HoleState.TOUCHING_SURFACE
    logger.debug("%s: %s", record.label, state.name)
    block.add(Move(z=0.0))

    depths = cycle_depths(params.skull_thickness, params.depth_per_cycle)
    for i, depth in enumerate(depths):
        state = (
            HoleState.TERMINAL_CYCLE if i == len(depths) - 1 else HoleState.CYCLIC_DRILL
        )
        logger.debug("%s: %s to Z%.4g", record.label, state.name, depth)
        block.add(Dwell(params.dwell_before_cycle))
        block.add(Move(z=depth))
        block.add(Dwell(params.dwell_after_cycle))
        block.add(Move(z=0.0))

    state = HoleState.RETRACTING
    logger.debug("%s: %s", record.label, state.name)
    block.add(Move(z=m.safe_height_mm, feed=m.travel_feed_mm_min))

    state = HoleState.HALTED_FOR_OPERATOR
    logger.debug("%s: %s", record.label, state.name)
    block.add(Halt())


def compose_drill(
    records: Sequence[InsertionRecord],
    params: DrillParams,
    config: MachineConfig,
    created: date | None = None,
) -> Program:
    """Build one program drilling a hole for every record.

    Parameters
    ----------
    records : Sequence[InsertionRecord]
        Holes to drill.  Visited in drilling order regardless of the
        order given (callers normally pass an already-sorted registry).
    params : DrillParams
        Validated drilling parameters.
    config : MachineConfig
        Travel feed, safe height, formatting.
    created : date | None
        Date for the header; today when omitted.

    Raises
    ------
    ValueError
        If *records* is empty.
    """
    if not records:
        raise ValueError("No holes to drill")

    ordered = sorted(records, key=drill_order_key)
    thickness = abs(params.skull_thickness)
    program = Program(
        stem=holes_stem(ordered),
        header=[
            created_line(config, created),
            f"Drill {thickness:g} mm holes at {params.depth_per_cycle:g} mm per cycle",
            "",
            *table_lines(
                "Injection",
                [(r.label, r.ml, r.ap, r.dv, r.angle) for r in ordered],
            ),
        ],
    )

    m = config.motion
    program.block().add(ResetPosition(0.0, 0.0, 0.0)).add(
        Move(z=m.safe_height_mm, feed=m.travel_feed_mm_min)
    )
    for record in ordered:
        _drill_hole(record, params, config, program.block(comment=record.label))

    logger.info(
        "Composed drill program for %d holes (%d cycles each)",
        len(ordered),
        len(cycle_depths(params.skull_thickness, params.depth_per_cycle)),
    )
    return program

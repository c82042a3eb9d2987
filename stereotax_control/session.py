"""Planning session -- the entry points that produce program artifacts.

A :class:`StereotaxSession` owns the insertion registry for one surgery
plan.  Each ``injection`` / ``cannula`` call solves one trajectory,
appends the record and writes one standalone program.  A later
``drill`` call writes one program that drills a hole for every record
registered so far.

Failure behaviour:
    - Bad parameters raise :class:`InvalidParameter` before anything is
      registered or written.
    - The record is appended before its artifact is written; a write
      failure (:class:`ProgramWriteError`) leaves the record registered.
    - Artifacts are written atomically, so a failed write never leaves a
      partial program behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable

from stereotax_control.configs.loader import MachineConfig, load_config
from stereotax_control.gcode.writer import render_program
from stereotax_control.job_ir.operations import Program
from stereotax_control.planning.overlay import SectionOverlay, section_overlays
from stereotax_control.planning.params import (
    InvalidParameter,
    validate_drill,
    validate_procedure,
)
from stereotax_control.planning.registry import InsertionRegistry
from stereotax_control.planning.trajectory import (
    InsertionKind,
    InsertionRecord,
    solve_insertion,
)
from stereotax_control.procedures.composer import compose_procedure
from stereotax_control.procedures.drill import compose_drill
from stereotax_control.utils import fs
from stereotax_control.utils.logging_config import log_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramResult:
    """What one program-producing call wrote."""

    path: Path
    text: str
    records: tuple[InsertionRecord, ...]


class StereotaxSession:
    """Surgery plan: registry of insertions plus artifact output.

    Parameters
    ----------
    config : MachineConfig | None
        Machine configuration; the shipped ``machine.yaml`` when omitted.
    output_dir : str | Path | None
        Where artifacts go; ``config.program.output_dir`` when omitted.
    today : Callable[[], date] | None
        Date source for program headers.
    """

    def __init__(
        self,
        config: MachineConfig | None = None,
        output_dir: str | Path | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._cfg = config or load_config()
        self._registry = InsertionRegistry()
        self._today = today or date.today
        self.output_dir = fs.ensure_dir(
            output_dir if output_dir is not None else self._cfg.program.output_dir
        )

    @property
    def config(self) -> MachineConfig:
        return self._cfg

    @property
    def registry(self) -> InsertionRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def injection(self, **params: Any) -> ProgramResult:
        """Insert a needle, go slightly past the target and come back.

        Accepts ``AP``/``ap``, ``ML``/``ml``, ``DV``/``dv``, ``angle``,
        ``name``, ``speed``, ``overshoot``, ``dwellBeforeStart`` and
        ``dwellAfterOvershoot``.
        """
        return self._procedure(InsertionKind.INJECTION, params)

    def cannula(self, **params: Any) -> ProgramResult:
        """Insert a cannula so a needle protruding by ``overshoot`` hits the target."""
        return self._procedure(InsertionKind.CANNULA, params)

    def drill(self, **params: Any) -> ProgramResult:
        """Drill holes for every registered injection and cannula.

        Raises
        ------
        InvalidParameter
            If parameters are invalid or nothing has been registered.
        """
        p = validate_drill(self._cfg.drill_defaults, **params)
        if not self._registry:
            raise InvalidParameter("drill requires at least one registered insertion")

        with log_context(procedure="drill"):
            self._registry.sort_for_drilling()
            records = self._registry.snapshot()
            program = compose_drill(records, p, self._cfg, created=self._today())
            return self._write(program, records)

    def overlay(self) -> list[SectionOverlay]:
        """Needle / overshoot segments per AP section for atlas rendering."""
        return section_overlays(self._registry)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _procedure(self, kind: InsertionKind, params: dict[str, Any]) -> ProgramResult:
        p = validate_procedure(self._cfg.procedure_defaults, **params)
        name = p.name if p.name is not None else str(len(self._registry) + 1)

        with log_context(procedure=kind.value):
            record = solve_insertion(
                kind,
                ap=p.ap,
                ml=p.ml,
                dv=p.dv,
                angle=p.angle,
                name=name,
                speed=p.speed,
                overshoot=p.overshoot,
                dwell_before_start=p.dwell_before_start,
                dwell_after_overshoot=p.dwell_after_overshoot,
            )
            self._registry.append(record)
            logger.info(
                "Registered %s %s: hole ML %.4g, AP %.4g",
                kind.value, record.label, record.hole_ml, record.ap,
            )
            program = compose_procedure(record, self._cfg, created=self._today())
            return self._write(program, (record,))

    def _write(
        self, program: Program, records: tuple[InsertionRecord, ...],
    ) -> ProgramResult:
        text = render_program(program, self._cfg)
        path = self.output_dir / self._cfg.artifact_name(program.stem)
        fs.atomic_write_text(path, text)
        logger.info('Saved as "%s"', path)
        logger.debug("Program %s:\n%s", program.stem, text)
        return ProgramResult(path=path, text=text, records=records)

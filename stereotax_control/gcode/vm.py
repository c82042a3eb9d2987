"""Offline program simulator for dry-run validation.

Provides:
    - Dry-run execution: parse a rendered program without hardware
    - Time estimation: constant-velocity moves at the modal feed plus dwells
    - Trajectory extraction: every commanded position in order
    - Halt counting: how many operator interventions the program needs

Reads both dialects (``gcode`` and ``mnemonic``) and skips comment
lines starting with the configured marker.

Public API:
    vm = ProgramVM(machine_cfg)
    vm.load_string(text)
    result = vm.run()  # → DryRunResult(time_estimate_s, halts, ...)

No serial communication or hardware control.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

from stereotax_control.configs.loader import MachineConfig
from stereotax_control.gcode.writer import DIALECT_WORDS
from stereotax_control.job_ir.operations import CommandKind

logger = logging.getLogger(__name__)

_NUMBER = r'[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?'
_WORD = re.compile(rf'([A-Z])\s*({_NUMBER})', re.IGNORECASE)

Position = tuple[float, float, float]


@dataclass
class DryRunResult:
    """Outcome of :meth:`ProgramVM.run`."""

    time_estimate_s: float
    dwell_time_s: float
    move_count: int
    halts: int
    final_pos: Position
    final_feed: float | None
    violations: list[str] = field(default_factory=list)
    trajectory: list[Position] = field(default_factory=list)


def _build_lookup() -> dict[str, CommandKind]:
    """Map every dialect's command word to its kind."""
    lookup: dict[str, CommandKind] = {}
    for words in DIALECT_WORDS.values():
        for kind, word in words.items():
            if word:
                lookup[word.upper()] = kind
    lookup["G0"] = CommandKind.MOVE
    lookup["G01"] = CommandKind.MOVE
    lookup["G04"] = CommandKind.DWELL
    lookup["M0"] = CommandKind.HALT
    return lookup


_COMMANDS = _build_lookup()


class ProgramVM:
    """Offline virtual machine for rendered motion programs.

    Parameters
    ----------
    machine_cfg : MachineConfig
        Supplies the comment marker.

    Attributes
    ----------
    pos : Position
        Current position (X, Y, Z) in mm
    feed : float | None
        Modal feed rate (mm/min), ``None`` until one is set
    """

    def __init__(self, machine_cfg: MachineConfig) -> None:
        self.machine_cfg = machine_cfg
        self._marker = machine_cfg.program.comment_marker
        self.lines: list[str] = []
        self.reset()

    def load_file(self, path: str | Path) -> None:
        """Load a program file.

        Raises
        ------
        FileNotFoundError
            If file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Program file not found: {path}")
        self.load_string(path.read_text(encoding="utf-8"))

    def load_string(self, text: str) -> None:
        self.lines = text.splitlines()
        logger.debug("Loaded %d program lines", len(self.lines))

    def reset(self) -> None:
        """Reset VM state to the origin with no feed."""
        self.pos: Position = (0.0, 0.0, 0.0)
        self.feed: float | None = None
        self.total_time = 0.0
        self.dwell_time = 0.0
        self.move_count = 0
        self.halts = 0
        self.violations: list[str] = []
        self.trajectory: list[Position] = [self.pos]

    @staticmethod
    def parse_words(text: str) -> dict[str, float]:
        """Parse letter/number words (``X1.5``, ``F100``, ``P-1e-05``)."""
        return {m.group(1).upper(): float(m.group(2)) for m in _WORD.finditer(text)}

    def execute_line(self, line: str, line_idx: int | None = None) -> None:
        """Execute a single program line, updating VM state."""
        line = line.strip()
        if not line or line.startswith(self._marker):
            return

        where = f"line {line_idx + 1}" if line_idx is not None else "input"
        head, _, rest = line.partition(" ")
        kind = _COMMANDS.get(head.upper())
        if kind is None and head[:1].upper() == "F":
            # Bare feed word (gcode dialect SETFEED)
            kind, rest = CommandKind.SET_FEED, line
        if kind is None:
            msg = f"Unknown command '{head}' at {where}"
            self.violations.append(msg)
            logger.warning(msg)
            return

        words = self.parse_words(rest)

        if kind is CommandKind.RESET:
            self.pos = (
                words.get("X", self.pos[0]),
                words.get("Y", self.pos[1]),
                words.get("Z", self.pos[2]),
            )
        elif kind is CommandKind.MOVE:
            if "F" in words:
                self.feed = words["F"]
            new_pos = (
                words.get("X", self.pos[0]),
                words.get("Y", self.pos[1]),
                words.get("Z", self.pos[2]),
            )
            if new_pos != self.pos:
                if not self.feed:
                    msg = f"Move without feed rate at {where}"
                    self.violations.append(msg)
                    logger.warning(msg)
                else:
                    self.total_time += math.dist(self.pos, new_pos) / (self.feed / 60.0)
                self.trajectory.append(new_pos)
            self.pos = new_pos
            self.move_count += 1
        elif kind is CommandKind.SET_FEED:
            if "F" not in words:
                self.violations.append(f"Feed command without F word at {where}")
                return
            self.feed = words["F"]
        elif kind is CommandKind.DWELL:
            seconds = words.get("P", 0.0)
            if seconds < 0:
                self.violations.append(f"Negative dwell at {where}")
                return
            self.dwell_time += seconds
            self.total_time += seconds
        elif kind is CommandKind.HALT:
            self.halts += 1

    def run(self) -> DryRunResult:
        """Execute the loaded program from a fresh state.

        Raises
        ------
        RuntimeError
            If no program is loaded
        """
        if not self.lines:
            raise RuntimeError("No program loaded, call load_file() or load_string() first")

        self.reset()
        for i, line in enumerate(self.lines):
            self.execute_line(line, line_idx=i)

        logger.info(
            "Dry run complete: %d moves, %d halts, %.1f s estimated",
            self.move_count, self.halts, self.total_time,
        )
        if self.violations:
            logger.warning("Found %d violations", len(self.violations))

        return DryRunResult(
            time_estimate_s=self.total_time,
            dwell_time_s=self.dwell_time,
            move_count=self.move_count,
            halts=self.halts,
            final_pos=self.pos,
            final_feed=self.feed,
            violations=list(self.violations),
            trajectory=list(self.trajectory),
        )


def dry_run(text: str, machine_cfg: MachineConfig) -> DryRunResult:
    """Convenience wrapper: load *text* and run it."""
    vm = ProgramVM(machine_cfg)
    vm.load_string(text)
    return vm.run()

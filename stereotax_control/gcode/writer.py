"""Motion writer -- program IR to G-code text.

Every number is rendered with a fixed significant-digit format
(``%.4g`` by default) so the emitted coordinate round-trips to at least
four significant figures.  Negative zero is printed as ``0``.

Dialects:
    ``gcode`` is what the robot firmware reads (``G92``, ``G1``, bare
    ``F``, ``G4 P``, ``M00``).  ``mnemonic`` spells the same commands as
    ``RESET``, ``MOVE``, ``SETFEED``, ``DWELL`` and ``HALT`` for review
    and for controllers with a translating front end.
"""

from __future__ import annotations

import logging
import math
from io import StringIO
from typing import TextIO

from stereotax_control.configs.loader import MachineConfig
from stereotax_control.job_ir.operations import (
    Command,
    CommandKind,
    Dwell,
    Halt,
    Move,
    Program,
    ResetPosition,
    SetFeed,
)

logger = logging.getLogger(__name__)


class ProgramError(Exception):
    """Raised when a command cannot be rendered (bad value, bad state)."""

    pass


DIALECT_WORDS: dict[str, dict[CommandKind, str]] = {
    "gcode": {
        CommandKind.RESET: "G92",
        CommandKind.MOVE: "G1",
        CommandKind.SET_FEED: "",
        CommandKind.DWELL: "G4",
        CommandKind.HALT: "M00",
    },
    "mnemonic": {
        CommandKind.RESET: "RESET",
        CommandKind.MOVE: "MOVE",
        CommandKind.SET_FEED: "SETFEED",
        CommandKind.DWELL: "DWELL",
        CommandKind.HALT: "HALT",
    },
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_number(value: float, digits: int = 4) -> str:
    """Render *value* with *digits* significant figures (C ``%g`` rules)."""
    if not math.isfinite(value):
        raise ProgramError(f"Cannot render non-finite value {value}")
    text = f"{value:.{digits}g}"
    if text == "-0":
        return "0"
    return text


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class MotionWriter:
    """Stateful emitter of primitive commands bound to one text stream.

    Parameters
    ----------
    stream : TextIO
        Destination.  The writer never opens or closes it.
    config : MachineConfig
        Supplies dialect, comment marker, line ending and digit count.

    Notes
    -----
    The writer tracks the modal feed rate and the commanded position so
    callers (and tests) can inspect where the program leaves the tool.
    A move with no feed before any feed was set is rejected: the
    firmware would run it at an undefined speed.
    """

    def __init__(self, stream: TextIO, config: MachineConfig) -> None:
        self._out = stream
        self._cfg = config
        self._words = DIALECT_WORDS[config.program.dialect]
        self._digits = config.program.significant_digits
        self._eol = config.program.line_ending
        self.feed: float | None = None
        self.position: dict[str, float | None] = {"X": None, "Y": None, "Z": None}
        self.line_count = 0

    # ------------------------------------------------------------------
    # Primitive operations
    # ------------------------------------------------------------------

    def reset_position(self, x: float, y: float, z: float) -> None:
        """Declare the current location as ``(x, y, z)`` without motion."""
        fields = [("X", x), ("Y", y), ("Z", z)]
        self._emit(CommandKind.RESET, fields)
        self.position = {"X": x, "Y": y, "Z": z}

    def move_to(
        self,
        x: float | None = None,
        y: float | None = None,
        z: float | None = None,
        feed: float | None = None,
    ) -> None:
        """Linear move; axes left as ``None`` are not commanded."""
        fields = [
            (letter, value)
            for letter, value in (("X", x), ("Y", y), ("Z", z))
            if value is not None
        ]
        if not fields and feed is None:
            raise ProgramError("move_to requires at least one axis or a feed")
        if feed is not None:
            if feed <= 0:
                raise ProgramError(f"Feed rate must be > 0, got {feed}")
            self.feed = feed
        elif fields and self.feed is None:
            raise ProgramError("Move commanded before any feed rate was set")
        if feed is not None:
            fields.append(("F", feed))
        self._emit(CommandKind.MOVE, fields)
        for letter, value in (("X", x), ("Y", y), ("Z", z)):
            if value is not None:
                self.position[letter] = value

    def set_feed_rate(self, feed: float) -> None:
        """Change the modal feed rate without motion."""
        if feed <= 0:
            raise ProgramError(f"Feed rate must be > 0, got {feed}")
        self.feed = feed
        self._emit(CommandKind.SET_FEED, [("F", feed)])

    def dwell(self, seconds: float) -> None:
        """Pause in place; *seconds* must be non-negative."""
        if seconds < 0:
            raise ProgramError(f"Dwell must be >= 0 s, got {seconds}")
        self._emit(CommandKind.DWELL, [("P", seconds)])

    def halt_for_operator(self) -> None:
        """Stop until the operator resumes."""
        self._emit(CommandKind.HALT, [])

    # ------------------------------------------------------------------
    # Non-command lines
    # ------------------------------------------------------------------

    def comment(self, text: str = "") -> None:
        marker = self._cfg.program.comment_marker
        self._line(f"{marker} {text}".rstrip())

    def blank(self) -> None:
        self._line("")

    # ------------------------------------------------------------------
    # IR dispatch
    # ------------------------------------------------------------------

    def write(self, command: Command) -> None:
        """Emit one IR command."""
        if isinstance(command, ResetPosition):
            self.reset_position(command.x, command.y, command.z)
        elif isinstance(command, Move):
            self.move_to(command.x, command.y, command.z, command.feed)
        elif isinstance(command, SetFeed):
            self.set_feed_rate(command.feed)
        elif isinstance(command, Dwell):
            self.dwell(command.seconds)
        elif isinstance(command, Halt):
            self.halt_for_operator()
        else:
            raise ProgramError(f"Unsupported command: {type(command).__name__}")

    def write_program(self, program: Program) -> None:
        """Emit header comments, then every block."""
        for line in program.header:
            self.comment(line)
        self.blank()
        self.blank()
        for block in program.blocks:
            if block.comment is not None:
                self.blank()
                self.comment(block.comment)
            for command in block.commands:
                self.write(command)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _emit(self, kind: CommandKind, fields: list[tuple[str, float]]) -> None:
        words = [self._words[kind]] if self._words[kind] else []
        words.extend(
            f"{letter}{format_number(value, self._digits)}" for letter, value in fields
        )
        self._line(" ".join(words))

    def _line(self, text: str) -> None:
        self._out.write(text + self._eol)
        self.line_count += 1


def render_program(program: Program, config: MachineConfig) -> str:
    """Render a complete program to text.

    Parameters
    ----------
    program : Program
        Program IR.
    config : MachineConfig
        Formatting configuration.

    Returns
    -------
    str
        Program text, terminated by one trailing empty line.
    """
    buf = StringIO()
    writer = MotionWriter(buf, config)
    writer.write_program(program)
    writer.blank()
    logger.debug("Rendered %s: %d lines", program.stem, writer.line_count)
    return buf.getvalue()

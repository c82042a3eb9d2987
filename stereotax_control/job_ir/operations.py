"""Motion program operations -- the vocabulary between planning and G-code.

Every machine command is an immutable, slotted dataclass.  The set is
closed: ``ResetPosition``, ``Move``, ``SetFeed``, ``Dwell`` and ``Halt``
(see :class:`CommandKind`).  Coordinates are robot-frame millimetres:
X is medial-lateral, Y is anterior-posterior and Z is height above the
skull surface (negative inside the brain).  Feeds are mm/min, dwells are
seconds.

Grouping
--------
A *Block* is an optionally-labelled run of commands (one hole of a drill
program, the setup prelude of an injection).  A *Program* is the header
comment lines plus an ordered list of blocks; it maps one-to-one to an
output artifact.
"""

from __future__ import annotations

import math
from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator

# ---------------------------------------------------------------------------
# Command kinds
# ---------------------------------------------------------------------------


class CommandKind(Enum):
    """Closed set of primitive machine commands."""

    RESET = "reset"
    MOVE = "move"
    SET_FEED = "set_feed"
    DWELL = "dwell"
    HALT = "halt"


def _check_finite(name: str, value: float | None) -> None:
    if value is not None and not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Command(ABC):
    """Base class for all machine commands."""

    kind: ClassVar[CommandKind]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResetPosition(Command):
    """Declare the current physical location as ``(x, y, z)`` (no motion).

    Emitted once per program so the robot re-zeroes on the skull
    reference point (bregma) before any travel.
    """

    kind: ClassVar[CommandKind] = CommandKind.RESET

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self) -> None:
        for axis in ("x", "y", "z"):
            _check_finite(axis, getattr(self, axis))


@dataclass(frozen=True, slots=True)
class Move(Command):
    """Linear move to the given axis values.

    Parameters
    ----------
    x, y, z : float | None
        Target axis values in mm.  ``None`` leaves the axis where it is.
    feed : float | None
        Feed rate (mm/min).  ``None`` keeps the modal feed rate.
    """

    kind: ClassVar[CommandKind] = CommandKind.MOVE

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None

    def __post_init__(self) -> None:
        if self.x is None and self.y is None and self.z is None and self.feed is None:
            raise ValueError("Move requires at least one axis or a feed rate")
        for name in ("x", "y", "z", "feed"):
            _check_finite(name, getattr(self, name))
        if self.feed is not None and self.feed <= 0:
            raise ValueError(f"Move feed must be > 0, got {self.feed}")

    def axes(self) -> Iterator[tuple[str, float]]:
        """Yield ``(letter, value)`` pairs in fixed X, Y, Z order."""
        for letter, value in (("X", self.x), ("Y", self.y), ("Z", self.z)):
            if value is not None:
                yield letter, value


@dataclass(frozen=True, slots=True)
class SetFeed(Command):
    """Change the modal feed rate without motion."""

    kind: ClassVar[CommandKind] = CommandKind.SET_FEED

    feed: float

    def __post_init__(self) -> None:
        _check_finite("feed", self.feed)
        if self.feed <= 0:
            raise ValueError(f"SetFeed feed must be > 0, got {self.feed}")


@dataclass(frozen=True, slots=True)
class Dwell(Command):
    """Pause in place for ``seconds``."""

    kind: ClassVar[CommandKind] = CommandKind.DWELL

    seconds: float

    def __post_init__(self) -> None:
        _check_finite("seconds", self.seconds)
        if self.seconds < 0:
            raise ValueError(f"Dwell must be >= 0 s, got {self.seconds}")


@dataclass(frozen=True, slots=True)
class Halt(Command):
    """Stop until the operator resumes (needle swap, next hole)."""

    kind: ClassVar[CommandKind] = CommandKind.HALT


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


@dataclass
class Block:
    """Run of commands, optionally preceded by a comment line."""

    commands: list[Command] = field(default_factory=list)
    comment: str | None = None

    def add(self, command: Command) -> Block:
        self.commands.append(command)
        return self


@dataclass
class Program:
    """Complete motion program for one artifact.

    Parameters
    ----------
    stem : str
        Artifact file stem, e.g. ``"NAc_Right_Injection"``.
    header : list[str]
        Comment lines (without the comment marker).
    blocks : list[Block]
        Command blocks in emission order.
    """

    stem: str
    header: list[str] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)

    def block(self, comment: str | None = None) -> Block:
        """Append and return a new empty block."""
        b = Block(comment=comment)
        self.blocks.append(b)
        return b

    def commands(self) -> list[Command]:
        """Flatten all blocks into one command list."""
        return [c for b in self.blocks for c in b.commands]

"""
Motion program intermediate representation.

Defines the closed command vocabulary as immutable dataclasses. This
vocabulary is the contract between procedure composition and rendering.

All coordinates are in millimeters, robot frame (X = ML, Y = AP, Z = height).
"""

from stereotax_control.job_ir.operations import (
    Block,
    Command,
    CommandKind,
    Dwell,
    Halt,
    Move,
    Program,
    ResetPosition,
    SetFeed,
)

__all__ = [
    "Block",
    "Command",
    "CommandKind",
    "Dwell",
    "Halt",
    "Move",
    "Program",
    "ResetPosition",
    "SetFeed",
]

"""
Program rendering module.

Renders program IR to text in the configured dialect and replays
rendered programs offline for dry-run validation.
"""

from stereotax_control.gcode.vm import DryRunResult, ProgramVM, dry_run
from stereotax_control.gcode.writer import (
    MotionWriter,
    ProgramError,
    format_number,
    render_program,
)

__all__ = [
    "DryRunResult",
    "MotionWriter",
    "ProgramError",
    "ProgramVM",
    "dry_run",
    "format_number",
    "render_program",
]

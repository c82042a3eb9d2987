"""
Stereotax Control Package.

Plans stereotaxic insertion trajectories (injections, cannula placements,
skull drilling) and emits the motion programs a small stereotaxic
surgery robot runs.  Programs are written as files; nothing here talks
to hardware.

Subpackages:
    planning: trajectory solver, parameter validation, insertion registry, overlay data
    job_ir: closed command vocabulary for motion programs
    procedures: injection / cannula composer and drill sequencer
    gcode: program rendering and offline dry-run
    configs: machine configuration loading and validation
    utils: logging and atomic file output
"""

from stereotax_control.session import ProgramResult, StereotaxSession

__version__ = "1.0.0"

__all__ = [
    "ProgramResult",
    "StereotaxSession",
    "configs",
    "gcode",
    "job_ir",
    "planning",
    "procedures",
    "utils",
]

"""
Procedure composition.

Turns solved insertion records into program IR: one standalone program
per injection or cannula, one combined program for drilling.
"""

from stereotax_control.procedures.composer import (
    compose_cannula,
    compose_injection,
    compose_procedure,
)
from stereotax_control.procedures.drill import HoleState, compose_drill, cycle_depths

__all__ = [
    "HoleState",
    "compose_cannula",
    "compose_drill",
    "compose_injection",
    "compose_procedure",
    "cycle_depths",
]

"""
Planning module.

Trajectory solving, parameter validation, the insertion registry and
overlay geometry.  Nothing here writes files.
"""

from stereotax_control.planning.params import (
    DrillParams,
    InvalidParameter,
    ProcedureParams,
    validate_drill,
    validate_procedure,
)
from stereotax_control.planning.registry import InsertionRegistry, drill_order_key
from stereotax_control.planning.trajectory import (
    InsertionKind,
    InsertionRecord,
    solve_insertion,
)

__all__ = [
    "DrillParams",
    "InsertionKind",
    "InsertionRecord",
    "InsertionRegistry",
    "InvalidParameter",
    "ProcedureParams",
    "drill_order_key",
    "solve_insertion",
    "validate_drill",
    "validate_procedure",
]

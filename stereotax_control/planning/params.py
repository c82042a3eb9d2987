"""Name/value parameter validation for the planning entry points.

Provides pydantic schemas for the two call shapes:
    - Procedure parameters (injection / cannula): target, angle, speed,
      overshoot, dwells
    - Drill parameters: skull thickness, depth per cycle, speed, dwells

Both snake_case names and the historical camelCase names (``AP``,
``ML``, ``DV``, ``dwellBeforeStart``, ``skullThickness``, ...) are
accepted.  Unknown names, non-scalar values, non-finite numbers and
out-of-range values fail fast with :class:`InvalidParameter` before any
record or artifact is created.

Units:
    - Coordinates and depths: millimeters (mm)
    - Speed: mm/min (G-code ``F``)
    - Dwells: seconds

Usage:
    from stereotax_control.planning import params
    p = params.validate_procedure(cfg.procedure_defaults, AP=1.7, ML=1, DV=7.3)
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from stereotax_control.configs.loader import DrillDefaults, ProcedureDefaults


class InvalidParameter(ValueError):
    """Raised when a planning call receives out-of-domain input."""

    pass


_STRICT = ConfigDict(
    extra="forbid",
    strict=True,
    allow_inf_nan=False,
    populate_by_name=True,
    frozen=True,
)


# ============================================================================
# PROCEDURE SCHEMA
# ============================================================================

class ProcedureParams(BaseModel):
    """Validated injection / cannula parameters."""
    model_config = _STRICT

    ap: float = Field(0.0, alias="AP", description="Anterior-posterior (mm)")
    ml: float = Field(0.0, alias="ML", description="Medial-lateral (mm), + is right")
    dv: float = Field(0.0, alias="DV", description="Dorsal-ventral (mm), sign ignored")
    angle: float = Field(0.0, ge=-89.0, le=89.0, description="Degrees from vertical")
    name: Optional[str] = Field(None, description="Label; side suffix is appended")
    speed: float = Field(..., gt=0.0, description="Insertion feed (mm/min)")
    overshoot: float = Field(..., ge=0.0, description="Overshoot / needle protrusion (mm)")
    dwell_before_start: float = Field(..., ge=0.0, alias="dwellBeforeStart")
    dwell_after_overshoot: float = Field(..., ge=0.0, alias="dwellAfterOvershoot")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        if any(ch in v for ch in '/\\:*?"<>|'):
            raise ValueError(f"name must be usable in a file name, got {v!r}")
        return v


# ============================================================================
# DRILL SCHEMA
# ============================================================================

class DrillParams(BaseModel):
    """Validated drill parameters.

    ``skull_thickness`` sign is ignored (the absolute value is drilled)
    but it must be non-zero.
    """
    model_config = _STRICT

    skull_thickness: float = Field(..., alias="skullThickness")
    depth_per_cycle: float = Field(..., gt=0.0, alias="depthPerCycle")
    speed: float = Field(..., gt=0.0)
    dwell_before_start: float = Field(..., ge=0.0, alias="dwellBeforeStart")
    dwell_before_cycle: float = Field(..., ge=0.0, alias="dwellBeforeCycle")
    dwell_after_cycle: float = Field(..., ge=0.0, alias="dwellAfterCycle")

    @field_validator('skull_thickness')
    @classmethod
    def validate_thickness(cls, v: float) -> float:
        if v == 0:
            raise ValueError("skull_thickness must be non-zero")
        return v


# ============================================================================
# HELPERS
# ============================================================================

M = TypeVar("M", bound=BaseModel)


def _canonical_names(model: Type[BaseModel], values: Dict[str, Any]) -> Dict[str, Any]:
    """Map aliases onto field names; reject a name given twice."""
    alias_to_field = {
        f.alias: name for name, f in model.model_fields.items() if f.alias
    }
    out: Dict[str, Any] = {}
    for key, value in values.items():
        field_name = alias_to_field.get(key, key)
        if field_name in out:
            raise InvalidParameter(
                f"Parameter '{field_name}' given more than once (as '{key}')"
            )
        out[field_name] = value
    return out


def _validate(model: Type[M], defaults: Dict[str, Any], values: Dict[str, Any]) -> M:
    merged = {**defaults, **_canonical_names(model, values)}
    try:
        return model.model_validate(merged)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidParameter(f"Invalid {model.__name__}: {problems}") from exc


def validate_procedure(defaults: ProcedureDefaults, **values: Any) -> ProcedureParams:
    """Validate injection / cannula parameters against configured defaults.

    Raises
    ------
    InvalidParameter
        On any unknown, malformed or out-of-range value.
    """
    base = {
        "speed": defaults.speed,
        "overshoot": defaults.overshoot,
        "dwell_before_start": defaults.dwell_before_start,
        "dwell_after_overshoot": defaults.dwell_after_overshoot,
    }
    return _validate(ProcedureParams, base, values)


def validate_drill(defaults: DrillDefaults, **values: Any) -> DrillParams:
    """Validate drill parameters against configured defaults.

    Raises
    ------
    InvalidParameter
        On any unknown, malformed or out-of-range value.
    """
    base = {
        "skull_thickness": defaults.skull_thickness,
        "depth_per_cycle": defaults.depth_per_cycle,
        "speed": defaults.speed,
        "dwell_before_start": defaults.dwell_before_start,
        "dwell_before_cycle": defaults.dwell_before_cycle,
        "dwell_after_cycle": defaults.dwell_after_cycle,
    }
    return _validate(DrillParams, base, values)

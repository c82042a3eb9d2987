"""Trajectory solver -- anatomical target + approach angle to robot positions.

Conventions
-----------
* ``ap``, ``ml`` are stereotaxic coordinates relative to bregma, ML
  positive to the right.
* ``dv`` is a depth; its sign on input is ignored.
* ``angle`` is measured from vertical in degrees.  It is always turned
  toward the midline: positive when the target is right of the midline,
  negative when left.  For a midline target (``ml == 0``) the caller's
  sign picks the side the needle enters from (positive = from the right).

The solver is pure: no state, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class InsertionKind(Enum):
    """What the procedure leaves in the brain."""

    INJECTION = "injection"
    CANNULA = "cannula"


@dataclass(frozen=True)
class InsertionRecord:
    """Fully solved insertion.  Immutable once created.

    ``target_*`` is where the tool tip stops.  ``overshoot_*`` is the point
    past the target for an injection, or the requested target (reached by
    a needle protruding from the cannula) for a cannula.
    """

    kind: InsertionKind
    name: str
    label: str
    ap: float
    ml: float
    dv: float
    angle: float
    hole_ml: float
    target_ml: float
    target_dv: float
    overshoot_ml: float
    overshoot_dv: float
    speed: float
    overshoot: float
    dwell_before_start: float
    dwell_after_overshoot: float

    @property
    def side(self) -> str | None:
        """``"Right"``, ``"Left"`` or ``None`` for a midline hole."""
        if self.hole_ml > 0:
            return "Right"
        if self.hole_ml < 0:
            return "Left"
        return None


def normalize_angle(ml: float, angle: float) -> float:
    """Turn *angle* toward the midline; leave it alone when ``ml == 0``."""
    if ml > 0:
        return abs(angle)
    if ml < 0:
        return -abs(angle)
    return angle


def surface_ml(ml: float, dv: float, angle: float) -> float:
    """ML coordinate where the line through ``(ml, dv)`` meets DV = 0."""
    return math.tan(math.radians(angle)) * dv + ml


def side_label(name: str, hole_ml: float) -> str:
    """Append ``_Right`` / ``_Left`` by the sign of *hole_ml*."""
    if hole_ml > 0:
        return f"{name}_Right"
    if hole_ml < 0:
        return f"{name}_Left"
    return name


def along_trajectory(
    ml: float, dv: float, angle: float, distance: float,
) -> tuple[float, float]:
    """Move *distance* mm deeper along the trajectory from ``(ml, dv)``.

    Negative *distance* moves back toward the skull surface.
    """
    rad = math.radians(angle)
    return ml - math.sin(rad) * distance, dv + math.cos(rad) * distance


def solve_insertion(
    kind: InsertionKind,
    *,
    ap: float,
    ml: float,
    dv: float,
    angle: float,
    name: str,
    speed: float,
    overshoot: float,
    dwell_before_start: float,
    dwell_after_overshoot: float,
) -> InsertionRecord:
    """Solve an insertion into a complete :class:`InsertionRecord`.

    Parameters
    ----------
    kind : InsertionKind
        Injection (go past the target and come back) or cannula (stop
        short so a protruding needle reaches the target).
    ap, ml, dv : float
        Requested target.  ``dv`` sign is ignored.
    angle : float
        Approach angle from vertical, degrees.
    name : str
        Base label; the side suffix is appended here.
    speed, overshoot, dwell_before_start, dwell_after_overshoot : float
        Procedure parameters carried on the record.

    Returns
    -------
    InsertionRecord
    """
    dv = abs(dv)
    angle = normalize_angle(ml, angle)
    hole_ml = surface_ml(ml, dv, angle)

    if kind is InsertionKind.INJECTION:
        target_ml, target_dv = ml, dv
        overshoot_ml, overshoot_dv = along_trajectory(ml, dv, angle, overshoot)
    else:
        overshoot_ml, overshoot_dv = ml, dv
        target_ml, target_dv = along_trajectory(ml, dv, angle, -overshoot)

    return InsertionRecord(
        kind=kind,
        name=name,
        label=side_label(name, hole_ml),
        ap=ap,
        ml=ml,
        dv=dv,
        angle=angle,
        hole_ml=hole_ml,
        target_ml=target_ml,
        target_dv=target_dv,
        overshoot_ml=overshoot_ml,
        overshoot_dv=overshoot_dv,
        speed=speed,
        overshoot=overshoot,
        dwell_before_start=dwell_before_start,
        dwell_after_overshoot=dwell_after_overshoot,
    )

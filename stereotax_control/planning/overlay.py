"""Overlay data for drawing planned needles on reference atlas plates.

Records are grouped into coronal sections by AP.  For each section the
needle segments (skull surface to tool tip) and overshoot segments (tool
tip to overshoot point) are returned as ``(N, 4)`` arrays of
``[x0, y0, x1, y1]`` in millimetres, with y growing ventrally as on the
plates.  Loading plates and drawing lines is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from stereotax_control.planning.trajectory import InsertionRecord


@dataclass(frozen=True)
class AtlasPlate:
    """Pixel calibration of one atlas plate."""

    x_offset: float
    y_offset: float
    x_px_per_mm: float
    y_px_per_mm: float

    def to_pixels(self, segments: np.ndarray) -> np.ndarray:
        """Map ``(N, 4)`` mm segments onto plate pixels."""
        scale = np.array(
            [self.x_px_per_mm, self.y_px_per_mm, self.x_px_per_mm, self.y_px_per_mm]
        )
        offset = np.array([self.x_offset, self.y_offset, self.x_offset, self.y_offset])
        return np.asarray(segments, dtype=float) * scale + offset


@dataclass(frozen=True)
class SectionOverlay:
    """Needle geometry for one AP section.

    ``sagittal_ml`` is the ML of the sagittal plate to show alongside (the
    most lateral-right target of the section).
    """

    ap: float
    sagittal_ml: float
    coronal_needles: np.ndarray
    coronal_overshoots: np.ndarray
    sagittal_needles: np.ndarray
    sagittal_overshoots: np.ndarray


def section_overlays(records: Iterable[InsertionRecord]) -> list[SectionOverlay]:
    """Group *records* by AP (ascending) and build overlay segments."""
    records = list(records)
    if not records:
        return []

    aps = np.array([r.ap for r in records])
    sections = []
    for ap in np.unique(aps):
        group = [r for r, a in zip(records, aps) if a == ap]
        hole_ml = np.array([r.hole_ml for r in group])
        target_ml = np.array([r.target_ml for r in group])
        target_dv = np.array([r.target_dv for r in group])
        over_ml = np.array([r.overshoot_ml for r in group])
        over_dv = np.array([r.overshoot_dv for r in group])
        zeros = np.zeros(len(group))
        x_sag = np.full(len(group), -float(ap))

        sections.append(
            SectionOverlay(
                ap=float(ap),
                sagittal_ml=float(max(r.ml for r in group)),
                coronal_needles=np.column_stack([hole_ml, zeros, target_ml, target_dv]),
                coronal_overshoots=np.column_stack([target_ml, target_dv, over_ml, over_dv]),
                sagittal_needles=np.column_stack([x_sag, zeros, x_sag, target_dv]),
                sagittal_overshoots=np.column_stack([x_sag, target_dv, x_sag, over_dv]),
            )
        )
    return sections

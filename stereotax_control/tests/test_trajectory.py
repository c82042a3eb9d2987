"""Tests for the trajectory solver.

Validates DV/angle normalisation, surface crossing, side labels and the
injection / cannula overshoot geometry.
"""

from __future__ import annotations

import dataclasses
import math

import pytest

from stereotax_control.planning.trajectory import (
    InsertionKind,
    InsertionRecord,
    along_trajectory,
    normalize_angle,
    side_label,
    solve_insertion,
    surface_ml,
)


def _solve(kind: InsertionKind = InsertionKind.INJECTION, **kw) -> InsertionRecord:
    args = dict(
        ap=0.0, ml=0.0, dv=0.0, angle=0.0, name="T", speed=25.0,
        overshoot=0.25, dwell_before_start=6.0, dwell_after_overshoot=6.0,
    )
    args.update(kw)
    return solve_insertion(kind, **args)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


class TestNormalisation:
    @pytest.mark.parametrize("dv", [7.3, -7.3])
    def test_dv_stored_positive(self, dv: float) -> None:
        assert _solve(dv=dv).dv == pytest.approx(7.3)

    @pytest.mark.parametrize("angle", [10.0, -10.0])
    def test_right_target_angle_positive(self, angle: float) -> None:
        assert normalize_angle(0.42, angle) == 10.0

    @pytest.mark.parametrize("angle", [10.0, -10.0])
    def test_left_target_angle_negative(self, angle: float) -> None:
        assert normalize_angle(-0.42, angle) == -10.0

    @pytest.mark.parametrize("angle", [15.0, -15.0, 0.0])
    def test_midline_angle_untouched(self, angle: float) -> None:
        assert normalize_angle(0.0, angle) == angle

    def test_record_angle_sign_follows_ml(self) -> None:
        for ml in (-2.0, -0.1, 0.1, 2.0):
            rec = _solve(ml=ml, dv=3.0, angle=-12.0)
            assert math.copysign(1.0, rec.angle) == math.copysign(1.0, ml)


# ---------------------------------------------------------------------------
# Surface crossing and labels
# ---------------------------------------------------------------------------


class TestHoleAndLabel:
    @pytest.mark.parametrize("ml,dv", [(1.0, 7.3), (-2.0, 8.1), (0.0, 3.0)])
    def test_vertical_hole_equals_ml(self, ml: float, dv: float) -> None:
        assert surface_ml(ml, dv, 0.0) == ml

    def test_hole_on_trajectory_line(self) -> None:
        rec = _solve(ml=-0.42, dv=2.6, angle=10.0)
        # Walking dv mm back up the trajectory from the target lands on the hole
        slope = math.tan(math.radians(rec.angle))
        assert rec.hole_ml - rec.ml == pytest.approx(slope * rec.dv)

    def test_label_right(self) -> None:
        assert side_label("NAc", 1.0) == "NAc_Right"

    def test_label_left(self) -> None:
        assert side_label("NAc", -1.0) == "NAc_Left"

    def test_label_midline_has_no_suffix(self) -> None:
        rec = _solve(ml=0.0, dv=3.0, angle=0.0, name="DRN")
        assert rec.hole_ml == 0.0
        assert rec.label == "DRN"
        assert rec.side is None

    def test_label_follows_hole_not_target(self) -> None:
        # Target on the midline, entering from the left
        rec = _solve(ml=0.0, dv=3.25, angle=-15.0, name="DRN")
        assert rec.hole_ml < 0
        assert rec.label == "DRN_Left"


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_vertical_injection(self) -> None:
        rec = _solve(ap=1.7, ml=1.0, dv=7.3, angle=0.0, name="NAc")
        assert rec.hole_ml == 1.0
        assert rec.label == "NAc_Right"
        assert rec.overshoot_dv == pytest.approx(7.55)
        assert rec.overshoot_ml == pytest.approx(1.0)
        assert (rec.target_ml, rec.target_dv) == (1.0, 7.3)

    def test_angled_midline_injection(self) -> None:
        rec = _solve(ap=-4.5, ml=0.0, dv=3.25, angle=15.0, name="DRN")
        assert rec.angle == 15.0
        assert rec.hole_ml == pytest.approx(0.8708, abs=1e-4)
        assert rec.label == "DRN_Right"

    def test_cannula_pulled_back(self) -> None:
        rec = _solve(
            InsertionKind.CANNULA,
            ap=-4.5, ml=0.0, dv=3.25, angle=15.0, name="DRN", overshoot=0.3,
        )
        assert (rec.overshoot_ml, rec.overshoot_dv) == (0.0, 3.25)
        rad = math.radians(15.0)
        assert rec.target_ml == pytest.approx(math.sin(rad) * 0.3)
        assert rec.target_dv == pytest.approx(3.25 - math.cos(rad) * 0.3)
        assert math.dist(
            (rec.target_ml, rec.target_dv), (rec.overshoot_ml, rec.overshoot_dv)
        ) == pytest.approx(0.3)


# ---------------------------------------------------------------------------
# Geometry properties
# ---------------------------------------------------------------------------


class TestGeometry:
    @pytest.mark.parametrize(
        "ml,dv,angle,overshoot",
        [(0.0, 3.25, 15.0, 0.3), (-1.2, 5.0, 20.0, 0.5), (2.0, 6.0, 7.5, 0.0)],
    )
    def test_cannula_advances_back_to_target(
        self, ml: float, dv: float, angle: float, overshoot: float,
    ) -> None:
        rec = _solve(InsertionKind.CANNULA, ml=ml, dv=dv, angle=angle, overshoot=overshoot)
        fwd = along_trajectory(rec.target_ml, rec.target_dv, rec.angle, overshoot)
        assert fwd == pytest.approx((rec.ml, rec.dv))
        assert (rec.overshoot_ml, rec.overshoot_dv) == pytest.approx((rec.ml, rec.dv))

    def test_injection_overshoot_is_deeper_on_same_line(self) -> None:
        rec = _solve(ml=1.5, dv=4.0, angle=12.0, overshoot=0.25)
        assert rec.overshoot_dv > rec.dv
        slope = math.tan(math.radians(rec.angle))
        # overshoot, target and hole are collinear
        assert rec.hole_ml - rec.overshoot_ml == pytest.approx(slope * rec.overshoot_dv)

    def test_record_is_frozen(self) -> None:
        rec = _solve()
        with pytest.raises(dataclasses.FrozenInstanceError):
            rec.ap = 1.0  # type: ignore[misc]

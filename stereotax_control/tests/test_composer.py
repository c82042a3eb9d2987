"""Tests for the injection / cannula composers.

Checks the exact command sequence of each procedure and the header
table contents.
"""

from __future__ import annotations

from datetime import date

import pytest

from stereotax_control.configs.loader import MachineConfig, load_config
from stereotax_control.gcode.writer import render_program
from stereotax_control.job_ir.operations import (
    Dwell,
    Halt,
    Move,
    ResetPosition,
    SetFeed,
)
from stereotax_control.planning.trajectory import InsertionKind, solve_insertion
from stereotax_control.procedures.composer import (
    UNFORMATTABLE_ROW,
    compose_cannula,
    compose_injection,
    compose_procedure,
    table_lines,
)

DAY = date(2019, 5, 14)


@pytest.fixture()
def config() -> MachineConfig:
    return load_config()


def _record(kind: InsertionKind, **kw):
    args = dict(
        ap=-1.85, ml=0.42, dv=2.6, angle=10.0, name="LHb", speed=50.0,
        overshoot=0.25, dwell_before_start=6.0, dwell_after_overshoot=5.0,
    )
    args.update(kw)
    return solve_insertion(kind, **args)


class TestInjection:
    def test_command_sequence(self, config: MachineConfig) -> None:
        rec = _record(InsertionKind.INJECTION)
        H = config.motion.safe_height_mm
        F0 = config.motion.travel_feed_mm_min
        assert compose_injection(rec, config, DAY).commands() == [
            ResetPosition(0.0, 0.0, 0.0),
            Move(z=H, feed=F0),
            Move(x=rec.hole_ml, y=rec.ap),
            Move(z=0.0),
            Dwell(6.0),
            Move(x=rec.overshoot_ml, y=rec.ap, z=-rec.overshoot_dv, feed=50.0),
            Dwell(5.0),
            Move(x=rec.ml, y=rec.ap, z=-rec.dv),
            Halt(),
            Move(x=rec.hole_ml, y=rec.ap, z=0.0, feed=50.0),
            Move(z=H, feed=F0),
        ]

    def test_stem_from_label(self, config: MachineConfig) -> None:
        rec = _record(InsertionKind.INJECTION)
        assert compose_injection(rec, config, DAY).stem == "LHb_Right_Injection"

    def test_header(self, config: MachineConfig) -> None:
        rec = _record(InsertionKind.INJECTION, ap=1.7, ml=1.0, dv=7.3, angle=0.0, name="NAc")
        header = compose_injection(rec, config, DAY).header
        assert header[0] == "Created 2019-May-14"
        assert header[1] == "Inject with 0.25 mm overshoot"
        assert header[2].split() == ["Injection", "ML", "AP", "DV", "Angle"]
        assert header[4].split() == ["NAc_Right", "+1", "+1.7", "+7.3", "+0"]

    def test_rejects_cannula_record(self, config: MachineConfig) -> None:
        with pytest.raises(ValueError):
            compose_injection(_record(InsertionKind.CANNULA), config, DAY)


class TestCannula:
    def test_command_sequence(self, config: MachineConfig) -> None:
        rec = _record(InsertionKind.CANNULA, overshoot=0.3, speed=10.0)
        H = config.motion.safe_height_mm
        F0 = config.motion.travel_feed_mm_min
        assert compose_cannula(rec, config, DAY).commands() == [
            ResetPosition(0.0, 0.0, 0.0),
            Move(z=H, feed=F0),
            Move(x=rec.hole_ml, y=rec.ap),
            Move(z=0.0),
            Dwell(6.0),
            Move(x=rec.target_ml, y=rec.ap, z=-rec.target_dv, feed=10.0),
            SetFeed(F0),
            Halt(),
        ]

    def test_no_overshoot_leg_or_retraction(self, config: MachineConfig) -> None:
        rec = _record(InsertionKind.CANNULA)
        cmds = compose_cannula(rec, config, DAY).commands()
        assert sum(isinstance(c, Dwell) for c in cmds) == 1
        assert isinstance(cmds[-1], Halt)

    def test_header_shows_needle_target(self, config: MachineConfig) -> None:
        rec = _record(
            InsertionKind.CANNULA, ap=-4.5, ml=0.0, dv=3.25, angle=15.0,
            name="DRN", overshoot=0.3,
        )
        header = compose_cannula(rec, config, DAY).header
        assert header[1] == "Insert cannula for 0.3 mm needle"
        assert header[4].split() == ["DRN_Right", "+0", "-4.5", "+3.25", "+15"]

    def test_rendered_text(self, config: MachineConfig) -> None:
        rec = _record(
            InsertionKind.CANNULA, ap=-4.5, ml=0.0, dv=3.25, angle=15.0,
            name="DRN", overshoot=0.3, speed=10.0,
        )
        text = render_program(compose_procedure(rec, config, DAY), config)
        body = [l for l in text.split("\r\n") if l and not l.startswith("%")]
        assert body == [
            "G92 X0 Y0 Z0",
            "G1 Z3 F100",
            "G1 X0.8708 Y-4.5",
            "G1 Z0",
            "G4 P6",
            "G1 X0.07765 Y-4.5 Z-2.96 F10",
            "F100",
            "M00",
        ]


class TestTable:
    def test_fixed_width_columns(self) -> None:
        lines = table_lines("Injection", [("VP_Left", -2.0, 0.0, 8.1, -0.0)])
        assert lines[2].startswith("VP_Left       -2      +0      +8.1")

    def test_long_label_truncated(self) -> None:
        lines = table_lines("Injection", [("VeryLongRegionName_Right", 1, 1, 1, 0)])
        assert lines[2].startswith("VeryLongRegio ")

    def test_bad_row_replaced(self) -> None:
        lines = table_lines("Injection", [("X", "not-a-number", 0.0, 1.0, 0.0)])
        assert lines[2] == UNFORMATTABLE_ROW

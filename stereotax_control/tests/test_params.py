"""Tests for name/value parameter validation."""

from __future__ import annotations

import math

import pytest

from stereotax_control.configs.loader import MachineConfig, load_config
from stereotax_control.planning.params import (
    InvalidParameter,
    validate_drill,
    validate_procedure,
)


@pytest.fixture()
def config() -> MachineConfig:
    return load_config()


class TestProcedureParams:
    def test_documented_defaults(self, config: MachineConfig) -> None:
        p = validate_procedure(config.procedure_defaults)
        assert (p.ap, p.ml, p.dv, p.angle) == (0.0, 0.0, 0.0, 0.0)
        assert p.name is None
        assert p.speed == 25
        assert p.overshoot == 0.25
        assert p.dwell_before_start == 6
        assert p.dwell_after_overshoot == 6

    def test_camel_case_names(self, config: MachineConfig) -> None:
        p = validate_procedure(
            config.procedure_defaults,
            AP=1.7, ML=-1, DV=7.3, dwellBeforeStart=2, dwellAfterOvershoot=3,
        )
        assert (p.ap, p.ml, p.dv) == (1.7, -1.0, 7.3)
        assert (p.dwell_before_start, p.dwell_after_overshoot) == (2.0, 3.0)

    def test_snake_case_names(self, config: MachineConfig) -> None:
        p = validate_procedure(config.procedure_defaults, ap=1.0, dwell_before_start=0)
        assert p.ap == 1.0
        assert p.dwell_before_start == 0.0

    def test_name_given_twice_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter, match="more than once"):
            validate_procedure(config.procedure_defaults, AP=1.0, ap=2.0)

    def test_unknown_name_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, depth=3.0)

    @pytest.mark.parametrize("value", [[1.0, 2.0], "1.7", None, True])
    def test_non_scalar_rejected(self, config: MachineConfig, value: object) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, AP=value)

    @pytest.mark.parametrize("value", [math.nan, math.inf])
    def test_non_finite_rejected(self, config: MachineConfig, value: float) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, DV=value)

    @pytest.mark.parametrize(
        "field", ["overshoot", "dwellBeforeStart", "dwellAfterOvershoot"]
    )
    def test_negative_rejected(self, config: MachineConfig, field: str) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, **{field: -0.1})

    def test_zero_speed_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, speed=0)

    def test_horizontal_angle_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, angle=90)

    def test_name_unsafe_for_file_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_procedure(config.procedure_defaults, name="a/b")

    def test_invalid_parameter_is_value_error(self, config: MachineConfig) -> None:
        with pytest.raises(ValueError):
            validate_procedure(config.procedure_defaults, speed=-1)


class TestDrillParams:
    def test_documented_defaults(self, config: MachineConfig) -> None:
        p = validate_drill(config.drill_defaults)
        assert p.skull_thickness == 1.0
        assert p.depth_per_cycle == 0.2
        assert p.speed == 50
        assert p.dwell_before_start == 4
        assert p.dwell_before_cycle == 1
        assert p.dwell_after_cycle == 0.5

    def test_negative_thickness_allowed(self, config: MachineConfig) -> None:
        p = validate_drill(config.drill_defaults, skullThickness=-0.8)
        assert p.skull_thickness == -0.8

    def test_zero_thickness_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_drill(config.drill_defaults, skullThickness=0)

    def test_zero_depth_per_cycle_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_drill(config.drill_defaults, depthPerCycle=0)

    def test_unknown_name_rejected(self, config: MachineConfig) -> None:
        with pytest.raises(InvalidParameter):
            validate_drill(config.drill_defaults, AP=1.0)

"""Configuration loader for stereotax control.

Loads and validates ``machine.yaml`` into typed, frozen dataclasses.
Travel feed, safe height, program formatting and the documented
parameter defaults all come from the config -- nothing is hardcoded in
the composers.

Feed rates are stored in **mm/min** throughout, the unit of the G-code
``F`` word, so no conversion happens at the rendering boundary.

Usage::

    from stereotax_control.configs.loader import load_config
    cfg = load_config()                       # default path
    cfg = load_config("/custom/machine.yaml") # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from stereotax_control.utils.fs import load_yaml

logger = logging.getLogger(__name__)

DIALECTS = ("gcode", "mnemonic")
MIN_SIGNIFICANT_DIGITS = 4


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MotionConfig:
    """Travel settings shared by every program."""

    travel_feed_mm_min: float
    safe_height_mm: float


@dataclass(frozen=True)
class ProgramConfig:
    """Output artifact formatting."""

    output_dir: str
    extension: str
    comment_marker: str
    line_ending: str
    dialect: str
    significant_digits: int
    date_format: str


@dataclass(frozen=True)
class ProcedureDefaults:
    """Defaults for ``injection`` and ``cannula`` calls."""

    speed: float
    overshoot: float
    dwell_before_start: float
    dwell_after_overshoot: float


@dataclass(frozen=True)
class DrillDefaults:
    """Defaults for the ``drill`` call."""

    skull_thickness: float
    depth_per_cycle: float
    speed: float
    dwell_before_start: float
    dwell_before_cycle: float
    dwell_after_cycle: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings consumed by the CLI."""

    level: str = "INFO"
    file: str | None = None
    json: bool = False


@dataclass(frozen=True)
class MachineConfig:
    """Root configuration object."""

    motion: MotionConfig
    program: ProgramConfig
    procedure_defaults: ProcedureDefaults
    drill_defaults: DrillDefaults
    logging: LoggingConfig

    def artifact_name(self, stem: str) -> str:
        """Return ``<stem>.<extension>``."""
        return f"{stem}.{self.program.extension}"


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_program(data: dict[str, Any]) -> ProgramConfig:
    """Parse the ``program`` section."""
    return ProgramConfig(
        output_dir=str(data.get("output_dir", "Output")),
        extension=str(data.get("extension", "ncc")).lstrip("."),
        comment_marker=str(data.get("comment_marker", "%")),
        line_ending=str(data.get("line_ending", "\r\n")),
        dialect=str(data.get("dialect", "gcode")),
        significant_digits=int(data.get("significant_digits", 4)),
        date_format=str(data.get("date_format", "%Y-%b-%d")),
    )


def _parse_procedure_defaults(data: dict[str, Any]) -> ProcedureDefaults:
    return ProcedureDefaults(
        speed=float(data["speed"]),
        overshoot=float(data["overshoot"]),
        dwell_before_start=float(data["dwell_before_start"]),
        dwell_after_overshoot=float(data["dwell_after_overshoot"]),
    )


def _parse_drill_defaults(data: dict[str, Any]) -> DrillDefaults:
    return DrillDefaults(
        skull_thickness=float(data["skull_thickness"]),
        depth_per_cycle=float(data["depth_per_cycle"]),
        speed=float(data["speed"]),
        dwell_before_start=float(data["dwell_before_start"]),
        dwell_before_cycle=float(data["dwell_before_cycle"]),
        dwell_after_cycle=float(data["dwell_after_cycle"]),
    )


def _parse_logging(data: dict[str, Any] | None) -> LoggingConfig:
    if not data:
        return LoggingConfig()
    log_file = data.get("file")
    return LoggingConfig(
        level=str(data.get("level", "INFO")).upper(),
        file=str(log_file) if log_file else None,
        json=bool(data.get("json", False)),
    )


def _require_positive(label: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{label} must be > 0, got {value}")


def _require_non_negative(label: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"{label} must be >= 0, got {value}")


def _validate_config(cfg: MachineConfig) -> None:
    """Cross-field validation after parsing."""
    _require_positive("motion.travel_feed_mm_min", cfg.motion.travel_feed_mm_min)
    _require_non_negative("motion.safe_height_mm", cfg.motion.safe_height_mm)

    p = cfg.program
    if p.dialect not in DIALECTS:
        raise ConfigError(
            f"program.dialect must be one of {DIALECTS}, got '{p.dialect}'"
        )
    if p.significant_digits < MIN_SIGNIFICANT_DIGITS:
        raise ConfigError(
            f"program.significant_digits must be >= {MIN_SIGNIFICANT_DIGITS}, "
            f"got {p.significant_digits}"
        )
    if not p.comment_marker.strip():
        raise ConfigError("program.comment_marker must not be blank")
    if p.line_ending not in ("\n", "\r\n"):
        raise ConfigError(
            f"program.line_ending must be LF or CRLF, got {p.line_ending!r}"
        )
    if not p.extension:
        raise ConfigError("program.extension must not be empty")

    d = cfg.procedure_defaults
    _require_positive("procedure_defaults.speed", d.speed)
    _require_non_negative("procedure_defaults.overshoot", d.overshoot)
    _require_non_negative("procedure_defaults.dwell_before_start", d.dwell_before_start)
    _require_non_negative(
        "procedure_defaults.dwell_after_overshoot", d.dwell_after_overshoot
    )

    dd = cfg.drill_defaults
    _require_positive("drill_defaults.skull_thickness", abs(dd.skull_thickness))
    _require_positive("drill_defaults.depth_per_cycle", dd.depth_per_cycle)
    _require_positive("drill_defaults.speed", dd.speed)
    _require_non_negative("drill_defaults.dwell_before_start", dd.dwell_before_start)
    _require_non_negative("drill_defaults.dwell_before_cycle", dd.dwell_before_cycle)
    _require_non_negative("drill_defaults.dwell_after_cycle", dd.dwell_after_cycle)

    if cfg.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"logging.level is not a valid level: {cfg.logging.level}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> MachineConfig:
    """Load and validate machine configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``machine.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    MachineConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "machine.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data: dict[str, Any] = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        mo = data["motion"]
        motion = MotionConfig(
            travel_feed_mm_min=float(mo["travel_feed_mm_min"]),
            safe_height_mm=float(mo["safe_height_mm"]),
        )

        config = MachineConfig(
            motion=motion,
            program=_parse_program(data.get("program") or {}),
            procedure_defaults=_parse_procedure_defaults(
                data["procedure_defaults"]
            ),
            drill_defaults=_parse_drill_defaults(data["drill_defaults"]),
            logging=_parse_logging(data.get("logging")),
        )

        _validate_config(config)
        logger.debug("Configuration loaded successfully")
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

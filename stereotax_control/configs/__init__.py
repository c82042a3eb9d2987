"""Machine configuration loading and validation."""

from stereotax_control.configs.loader import (
    ConfigError,
    DrillDefaults,
    LoggingConfig,
    MachineConfig,
    MotionConfig,
    ProcedureDefaults,
    ProgramConfig,
    load_config,
)

__all__ = [
    "ConfigError",
    "DrillDefaults",
    "LoggingConfig",
    "MachineConfig",
    "MotionConfig",
    "ProcedureDefaults",
    "ProgramConfig",
    "load_config",
]

"""Configuration loading."""

from transcript_parity.config.settings import (
    ParityTestConfig,
    ReferenceConfig,
    Settings,
    load_settings,
    validate_reference_config,
)

__all__ = [
    "ParityTestConfig",
    "ReferenceConfig",
    "Settings",
    "load_settings",
    "validate_reference_config",
]

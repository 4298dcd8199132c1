"""
commission_config -- single public entrypoint for commission configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.  Returns a frozen
    ``CommissionConfig``.

Architecture position:
    Configuration -- YAML-driven settings and rate tables.
    Sits above ``commission_kernel`` and below ``commission_services``.
    The kernel and the engines MUST NEVER import from ``commission_config``;
    services translate configuration into plain engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic: the same YAML document always yields the same checksum.

Failure modes:
    - ``ConfigurationError`` -- no configuration set with the requested
      name, or cross-section validation failed.
    - ``KeyError`` / ``ValueError`` -- missing or malformed fields.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``COMMISSION_CONFIG_TRACE`` log entry with the config id, version,
    checksum and table sizes, tying every computed schedule back to the
    configuration that governed its rates and policies.
"""

from __future__ import annotations

import logging
from pathlib import Path

from commission_kernel.exceptions import ConfigurationError
from commission_config.loader import load_yaml_file, parse_config
from commission_config.schema import (
    CommissionConfig,
    EngineSettings,
    RentabilityDef,
    RentabilityPeriodDef,
    UserTypeDef,
)

_logger = logging.getLogger("commission_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    config_dir: Path | None = None,
    name: str = "default",
) -> CommissionConfig:
    """The ONLY public configuration entrypoint.

    Contract:
        No other component may read configuration files.  Callers hold the
        returned config for the duration of a computation or batch.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to commission_config/sets/.
        name: Configuration set name (``<name>.yaml`` in ``config_dir``).

    Returns:
        CommissionConfig -- frozen, validated configuration.

    Raises:
        ConfigurationError: If no configuration set named ``name`` exists
            or the set fails cross-section validation.
        KeyError / ValueError: If required fields are missing or malformed.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise ConfigurationError(
            f"Configuration set {name!r} not found", source=str(sets_dir)
        )

    config = parse_config(load_yaml_file(path), source=str(path))

    _logger.info(
        "COMMISSION_CONFIG_TRACE",
        extra={
            "trace_type": "COMMISSION_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "rentability_count": len(config.rentabilities),
            "user_type_count": len(config.user_types),
            "missing_rate_policy": config.settings.missing_rate_policy.value,
        },
    )

    return config


__all__ = [
    "CommissionConfig",
    "EngineSettings",
    "RentabilityDef",
    "RentabilityPeriodDef",
    "UserTypeDef",
    "get_active_config",
]

"""
Configuration Loader (``commission_config.loader``).

Responsibility
--------------
Loads YAML configuration files and parses them into typed
``commission_config.schema`` dataclass instances.  This is build/test
tooling; runtime callers go through
``commission_config.get_active_config()``.

Architecture position
---------------------
**Config layer**.  Depends on ``commission_kernel`` only for enums and
exceptions; never imported by the engines.

Invariants enforced
-------------------
* Required keys raise ``KeyError``; malformed values raise ``ValueError``;
  structural problems across sections raise ``ConfigurationError``.
  There are no silent defaults for required fields.
* Rates are parsed to ``Decimal`` through their string form so that a
  YAML float such as ``1.8`` becomes exactly ``Decimal("1.8")``.
* ``compute_checksum`` is deterministic over the source document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from commission_kernel.domain.results import BoundaryPolicy
from commission_kernel.domain.values import Liquidity
from commission_kernel.exceptions import ConfigurationError
from commission_config.schema import (
    CommissionConfig,
    EngineSettings,
    RentabilityDef,
    RentabilityPeriodDef,
    UserTypeDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a YAML number or numeric string into a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{field_name}: expected a number, got {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"{field_name}: must be finite, got {value!r}")
    return result


def parse_policy(value: Any, field_name: str) -> BoundaryPolicy:
    try:
        return BoundaryPolicy(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(
            f"{field_name}: expected one of "
            f"{[p.value for p in BoundaryPolicy]}, got {value!r}"
        ) from exc


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """Parse ``EngineSettings``; absent keys take the documented defaults."""
    defaults = EngineSettings()
    timeout = data.get("rate_timeout_seconds", defaults.rate_timeout_seconds)
    settings = EngineSettings(
        default_commitment_months=int(
            data.get("default_commitment_months", defaults.default_commitment_months)
        ),
        default_liquidity=Liquidity.parse(
            data.get("default_liquidity", defaults.default_liquidity)
        ),
        default_payout_start_days=int(
            data.get("default_payout_start_days", defaults.default_payout_start_days)
        ),
        invalid_date_policy=parse_policy(
            data.get("invalid_date_policy", defaults.invalid_date_policy.value),
            "invalid_date_policy",
        ),
        unknown_liquidity_policy=parse_policy(
            data.get("unknown_liquidity_policy", defaults.unknown_liquidity_policy.value),
            "unknown_liquidity_policy",
        ),
        missing_rate_policy=parse_policy(
            data.get("missing_rate_policy", defaults.missing_rate_policy.value),
            "missing_rate_policy",
        ),
        rate_timeout_seconds=None if timeout is None else float(timeout),
    )
    if settings.default_commitment_months <= 0:
        raise ValueError("default_commitment_months must be positive")
    if settings.default_payout_start_days < 0:
        raise ValueError("default_payout_start_days cannot be negative")
    if settings.rate_timeout_seconds is not None and settings.rate_timeout_seconds <= 0:
        raise ValueError("rate_timeout_seconds must be positive when set")
    return settings


def parse_rentability_period(data: dict[str, Any]) -> RentabilityPeriodDef:
    """
    Parse one period row: ``{months: 12, rates: {monthly: 2.1, ...}}``.

    Liquidity keys accept the same labels as ``Liquidity.parse``.
    """
    months = int(data["months"])
    rates: list[tuple[Liquidity, Decimal]] = []
    for label, value in (data.get("rates") or {}).items():
        liquidity = Liquidity.parse(label)
        rates.append((liquidity, parse_decimal(value, f"periods[{months}].{label}")))
    rates.sort(key=lambda item: item[0].cycle_months)
    return RentabilityPeriodDef(months=months, rates=tuple(rates))


def parse_rentability(data: dict[str, Any]) -> RentabilityDef:
    """Parse a ``RentabilityDef`` from a dict."""
    is_fixed = bool(data.get("is_fixed", False))
    fixed_rate = data.get("fixed_rate")
    psd = data.get("payout_start_days")
    rentability = RentabilityDef(
        id=str(data["id"]),
        title=data.get("title", str(data["id"])),
        is_fixed=is_fixed,
        fixed_rate=(
            parse_decimal(fixed_rate, f"{data['id']}.fixed_rate")
            if fixed_rate is not None else None
        ),
        payout_start_days=int(psd) if psd is not None else None,
        periods=tuple(
            parse_rentability_period(p) for p in data.get("periods") or []
        ),
    )
    if rentability.is_fixed and rentability.fixed_rate is None:
        raise ValueError(f"rentability {rentability.id}: is_fixed requires fixed_rate")
    if rentability.payout_start_days is not None and rentability.payout_start_days < 0:
        raise ValueError(
            f"rentability {rentability.id}: payout_start_days cannot be negative"
        )
    return rentability


def parse_user_type(data: dict[str, Any]) -> UserTypeDef:
    """Parse a ``UserTypeDef`` from a dict."""
    rentability_id = data.get("rentability_id")
    return UserTypeDef(
        id=str(data["id"]),
        name=data.get("name", str(data["id"])),
        rentability_id=str(rentability_id) if rentability_id is not None else None,
    )


def parse_redemption_windows(data: dict[Any, Any]) -> tuple[tuple[int, int], ...]:
    windows = tuple(sorted((int(k), int(v)) for k, v in data.items()))
    for months, days in windows:
        if months <= 0 or days <= 0:
            raise ValueError(f"redemption window {months}->{days} must be positive")
    return windows


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any], source: str | None = None) -> CommissionConfig:
    """
    Parse and cross-check a whole configuration document.

    Raises:
        KeyError: required key missing.
        ValueError: malformed value.
        ConfigurationError: duplicate ids or dangling rentability references.
    """
    rentabilities = tuple(parse_rentability(r) for r in data.get("rentabilities") or [])
    user_types = tuple(parse_user_type(u) for u in data.get("user_types") or [])

    known = [r.id for r in rentabilities]
    if len(set(known)) != len(known):
        raise ConfigurationError("duplicate rentability id", source=source)
    ids = [u.id for u in user_types]
    if len(set(ids)) != len(ids):
        raise ConfigurationError("duplicate user type id", source=source)
    for user_type in user_types:
        if user_type.rentability_id is not None and user_type.rentability_id not in known:
            raise ConfigurationError(
                f"user type {user_type.id} references unknown rentability "
                f"{user_type.rentability_id}",
                source=source,
            )

    return CommissionConfig(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        settings=parse_settings(data.get("settings") or {}),
        rentabilities=rentabilities,
        user_types=user_types,
        redemption_windows=parse_redemption_windows(data.get("redemption_windows") or {}),
        checksum=compute_checksum(data),
        source_path=source,
    )

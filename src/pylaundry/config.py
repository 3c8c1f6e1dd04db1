"""Engine configuration for pylaundry."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pylaundry._constants import (
    DEFAULT_CACHE_TTL,
    DRIVERS_CACHE_TTL,
    INVENTORY_CACHE_TTL,
    MINUTES_PER_STOP,
    ORDERS_CACHE_TTL,
)
from pylaundry.exceptions import LaundryConfigError


_SWITCH_VALUES: dict[str, bool] = {
    "1": True,
    "true": True,
    "on": True,
    "0": False,
    "false": False,
    "off": False,
}


def _env_switch(env: Mapping[str, str], key: str) -> bool | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return _SWITCH_VALUES[value.strip().lower()]
    except KeyError as exc:
        raise LaundryConfigError(f"{key} must be one of {sorted(_SWITCH_VALUES)}, got {value!r}") from exc


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise LaundryConfigError(f"{key} must be numeric, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class EngineConfig:
    """Engine configuration.

    Parameters
    ----------
    storage_dir : Path or None
        Directory holding one file per storage key.  ``None`` keeps
        everything in memory for the lifetime of the engine.
    encryption_key : str or None
        Hex-encoded AES key (16, 24 or 32 bytes).  When set, values are
        encrypted before they reach the durable medium.
    default_cache_ttl : float
        Seconds a cached value stays fresh when no explicit TTL is given.
    orders_cache_ttl : float
        Cache lifetime for the ``orders`` collection.
    inventory_cache_ttl : float
        Cache lifetime for the ``inventory`` collection.
    drivers_cache_ttl : float
        Cache lifetime for the ``drivers`` and ``routes`` collections.
    minutes_per_stop : int
        Flat per-stop time budget used by the default route policy.
    serialize_mutations : bool
        Serialize concurrent mutations of the same store.  Disabling
        this reproduces the lost-update behaviour of unsynchronised
        whole-collection writes.
    """

    storage_dir: Path | None = None
    encryption_key: str | None = None
    default_cache_ttl: float = DEFAULT_CACHE_TTL
    orders_cache_ttl: float = ORDERS_CACHE_TTL
    inventory_cache_ttl: float = INVENTORY_CACHE_TTL
    drivers_cache_ttl: float = DRIVERS_CACHE_TTL
    minutes_per_stop: int = MINUTES_PER_STOP
    serialize_mutations: bool = True

    def __post_init__(self) -> None:
        for name in ("default_cache_ttl", "orders_cache_ttl", "inventory_cache_ttl", "drivers_cache_ttl"):
            if getattr(self, name) < 0:
                raise LaundryConfigError(f"{name} must be >= 0")
        if self.minutes_per_stop <= 0:
            raise LaundryConfigError("minutes_per_stop must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> EngineConfig:
        """Create configuration from ``LAUNDRY_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_dir = env.get("LAUNDRY_STORAGE_DIR")
        if storage_dir:
            config_kwargs["storage_dir"] = Path(storage_dir)

        key = env.get("LAUNDRY_ENCRYPTION_KEY")
        if key:
            config_kwargs["encryption_key"] = key

        _ENV_TTL_MAP = {
            "LAUNDRY_CACHE_TTL": "default_cache_ttl",
            "LAUNDRY_ORDERS_CACHE_TTL": "orders_cache_ttl",
            "LAUNDRY_INVENTORY_CACHE_TTL": "inventory_cache_ttl",
            "LAUNDRY_DRIVERS_CACHE_TTL": "drivers_cache_ttl",
        }
        for env_key, field_name in _ENV_TTL_MAP.items():
            if field_name in overrides:
                continue
            ttl = _env_float(env, env_key)
            if ttl is not None:
                config_kwargs[field_name] = ttl

        minutes_env = env.get("LAUNDRY_MINUTES_PER_STOP")
        if minutes_env is not None and "minutes_per_stop" not in overrides:
            try:
                config_kwargs["minutes_per_stop"] = int(minutes_env)
            except ValueError as exc:
                raise LaundryConfigError(f"LAUNDRY_MINUTES_PER_STOP must be an integer, got {minutes_env!r}") from exc

        if "serialize_mutations" not in overrides:
            serialize = _env_switch(env, "LAUNDRY_SERIALIZE_MUTATIONS")
            if serialize is not None:
                config_kwargs["serialize_mutations"] = serialize

        config_kwargs.update(overrides)
        if isinstance(config_kwargs.get("storage_dir"), str):
            config_kwargs["storage_dir"] = Path(config_kwargs["storage_dir"])

        return cls(**config_kwargs)

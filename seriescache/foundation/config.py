from __future__ import annotations

import logging
import os
from dataclasses import MISSING, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, FrozenSet, Mapping

import yaml  # type: ignore[import-untyped]

from seriescache.foundation.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# deprecated key -> current key, per section
_ALIASES: dict[str, dict[str, str]] = {
    "fred": {
        "key": "api_key",
        "url": "base_url",
        "timeout": "timeout_seconds",
    },
    "storage": {
        "path": "root",
        "directory": "root",
    },
}

STORAGE_BACKENDS: tuple[str, ...] = ("file", "memory")
CLIENT_MODES: tuple[str, ...] = ("fred", "synthetic")


@dataclass
class FredConfig:
    """FRED REST API access."""

    api_key: str | None = field(
        default=None, metadata={"env": "SERIESCACHE_FRED_API_KEY"}
    )
    base_url: str = field(
        default="https://api.stlouisfed.org",
        metadata={"env": "SERIESCACHE_FRED_BASE_URL"},
    )
    timeout_seconds: float = field(
        default=30.0, metadata={"env": "SERIESCACHE_FRED_TIMEOUT"}
    )


@dataclass
class StorageConfig:
    """Where cached observations and coverage are persisted."""

    backend: str = field(
        default="file", metadata={"env": "SERIESCACHE_STORAGE_BACKEND"}
    )
    root: str = field(
        default=".seriescache", metadata={"env": "SERIESCACHE_STORAGE_ROOT"}
    )
    coverage_name: str = "coverage.csv"
    legacy_observations_name: str = "observations.csv"
    observation_prefix: str = "obs-"


@dataclass
class ClientConfig:
    """Which upstream client serves gap fetches."""

    mode: str = field(default="fred", metadata={"env": "SERIESCACHE_CLIENT_MODE"})
    seed: str | None = field(
        default=None, metadata={"env": "SERIESCACHE_CLIENT_SEED"}
    )


CONFIG_SECTION_NAMES: tuple[str, ...] = ("fred", "storage", "client")


@dataclass
class SeriesCacheConfig:
    """Configuration aggregating every section."""

    fred: FredConfig = field(default_factory=FredConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    present_sections: FrozenSet[str] = field(default_factory=frozenset)


def find_config_file(cwd: Path | None = None) -> str | None:
    """Return the first discoverable configuration file in ``cwd``."""

    base = Path.cwd() if cwd is None else cwd

    for name in ("seriescache.yml", "seriescache.yaml"):
        candidate = base / name
        if candidate.is_file():
            return str(candidate)
    return None


_SECTION_TYPES: dict[str, type] = {
    "fred": FredConfig,
    "storage": StorageConfig,
    "client": ClientConfig,
}


def _parse_file(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            try:
                document = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                logger.error("Cannot parse seriescache config %s: %s", path, exc)
                raise ValueError(f"Cannot parse seriescache config {path}") from exc
    except OSError as exc:
        logger.error("Cannot read seriescache config %s: %s", path, exc)
        raise

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise TypeError(f"{path}: top level must be a mapping")
    return document


def _section_values(name: str, raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TypeError(f"{name} section must be a mapping")
    values = dict(raw)
    for old, new in _ALIASES.get(name, {}).items():
        if old not in values or new in values:
            continue
        logger.warning("%s: key '%s' is deprecated; use '%s' instead", name, old, new)
        values[new] = values.pop(old)
    return values


def load_config(path: str) -> SeriesCacheConfig:
    """Parse YAML/JSON and populate :class:`SeriesCacheConfig`.

    Missing or empty sections fall back to defaults. Unknown keys inside a
    section raise ``TypeError`` from the section dataclass.
    """
    document = _parse_file(path)
    sections = {
        name: section_type(**_section_values(name, document.get(name)))
        for name, section_type in _SECTION_TYPES.items()
    }
    present = frozenset(
        name for name in CONFIG_SECTION_NAMES if isinstance(document.get(name), dict)
    )
    return SeriesCacheConfig(**sections, present_sections=present)


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _coerce(raw: str, default: Any, env_key: str) -> Any:
    text = raw.strip()
    if isinstance(default, bool):
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{env_key}: expected a boolean, got {raw!r}")
    if isinstance(default, int):
        try:
            return int(text)
        except ValueError as exc:
            raise ConfigurationError(f"{env_key}: expected an integer, got {raw!r}") from exc
    if isinstance(default, float):
        try:
            return float(text)
        except ValueError as exc:
            raise ConfigurationError(f"{env_key}: expected a number, got {raw!r}") from exc
    if default is None and not text:
        return None
    return text


def _override_section(section: Any, environ: Mapping[str, str]) -> Any:
    changes: dict[str, Any] = {}
    for fld in fields(section):
        env_key = fld.metadata.get("env")
        if not env_key or env_key not in environ:
            continue
        # coerce by the declared default, not the loaded value
        default = fld.default if fld.default is not MISSING else getattr(section, fld.name)
        changes[fld.name] = _coerce(environ[env_key], default, env_key)
    return replace(section, **changes) if changes else section


def apply_env_overrides(
    config: SeriesCacheConfig, environ: Mapping[str, str] | None = None
) -> SeriesCacheConfig:
    """Return ``config`` with fields replaced by their environment variables."""

    env = os.environ if environ is None else environ
    return replace(
        config,
        **{
            name: _override_section(getattr(config, name), env)
            for name in CONFIG_SECTION_NAMES
        },
    )


def validate_config(config: SeriesCacheConfig) -> SeriesCacheConfig:
    backend = config.storage.backend.strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"storage.backend must be one of {', '.join(STORAGE_BACKENDS)}; got {backend!r}"
        )
    mode = config.client.mode.strip().lower()
    if mode not in CLIENT_MODES:
        raise ConfigurationError(
            f"client.mode must be one of {', '.join(CLIENT_MODES)}; got {mode!r}"
        )
    if config.fred.timeout_seconds <= 0:
        raise ConfigurationError("fred.timeout_seconds must be positive")
    return config


__all__ = [
    "CLIENT_MODES",
    "CONFIG_SECTION_NAMES",
    "ClientConfig",
    "FredConfig",
    "STORAGE_BACKENDS",
    "SeriesCacheConfig",
    "StorageConfig",
    "apply_env_overrides",
    "find_config_file",
    "load_config",
    "validate_config",
]

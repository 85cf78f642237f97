"""Process-wide configuration accessor used by the CLI and factories."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping
import logging

from seriescache.foundation.config import (
    SeriesCacheConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
    validate_config,
)

logger = logging.getLogger(__name__)

_CONFIG_OVERRIDE: SeriesCacheConfig | None = None
_CONFIG_CACHE: SeriesCacheConfig | None = None
_CONFIG_SOURCE_PATH: str | None = None


def _load(path: str | Path | None, environ: Mapping[str, str] | None) -> SeriesCacheConfig:
    config = load_config(str(path)) if path is not None else SeriesCacheConfig()
    return validate_config(apply_env_overrides(config, environ))


def set_config_override(config: SeriesCacheConfig | None) -> None:
    """Set a process-wide override for the active configuration."""

    global _CONFIG_OVERRIDE
    _CONFIG_OVERRIDE = config


def reset_config_cache() -> None:
    """Clear the cached configuration."""

    global _CONFIG_CACHE, _CONFIG_SOURCE_PATH
    _CONFIG_CACHE = None
    _CONFIG_SOURCE_PATH = None


@contextmanager
def config_override(config: SeriesCacheConfig | None) -> Iterator[None]:
    """Temporarily override the configuration returned by :func:`get_config`."""

    previous = _CONFIG_OVERRIDE
    set_config_override(config)
    try:
        yield
    finally:
        set_config_override(previous)


def get_config(
    path: str | Path | None = None, *, environ: Mapping[str, str] | None = None
) -> SeriesCacheConfig:
    """Return the active configuration.

    An explicit ``path`` is always loaded fresh. Otherwise an override wins,
    then the cached result of discovering ``seriescache.yml`` in the current
    directory, then defaults. Environment overrides apply in every case
    except the override.
    """

    if path is not None:
        return _load(path, environ)

    if _CONFIG_OVERRIDE is not None:
        return _CONFIG_OVERRIDE

    global _CONFIG_CACHE, _CONFIG_SOURCE_PATH
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg_path = find_config_file()
    if not cfg_path:
        logger.debug("No seriescache config file discovered; using defaults")
    _CONFIG_CACHE = _load(cfg_path, environ)
    _CONFIG_SOURCE_PATH = cfg_path
    return _CONFIG_CACHE


def get_config_path() -> str | None:
    """Return the path used for the cached configuration."""

    if _CONFIG_OVERRIDE is not None:
        return None
    if _CONFIG_CACHE is None:
        get_config()
    return _CONFIG_SOURCE_PATH


__all__ = [
    "config_override",
    "get_config",
    "get_config_path",
    "reset_config_cache",
    "set_config_override",
]

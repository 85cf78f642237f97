import pytest

from seriescache.foundation.config import ClientConfig, SeriesCacheConfig
from seriescache.foundation.exceptions import ConfigurationError
from seriescache.runtime import configuration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "SERIESCACHE_FRED_API_KEY",
        "SERIESCACHE_STORAGE_BACKEND",
        "SERIESCACHE_CLIENT_MODE",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults_when_no_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    configuration.reset_config_cache()

    cfg = configuration.get_config()

    assert cfg.storage.backend == "file"
    assert configuration.get_config_path() is None
    configuration.reset_config_cache()


def test_discovered_file_is_cached(configure_cache):
    path = configure_cache({"client": {"mode": "synthetic"}})

    first = configuration.get_config()
    second = configuration.get_config()

    assert first is second
    assert first.client.mode == "synthetic"
    assert configuration.get_config_path() == path


def test_env_applies_to_discovered_file(configure_cache, monkeypatch):
    configure_cache({"storage": {"backend": "file"}})
    monkeypatch.setenv("SERIESCACHE_STORAGE_BACKEND", "memory")

    assert configuration.get_config().storage.backend == "memory"


def test_explicit_path_bypasses_cache(configure_cache, tmp_path):
    configure_cache({"client": {"mode": "synthetic"}})
    other = tmp_path / "other.yml"
    other.write_text("client:\n  mode: fred\n")

    assert configuration.get_config(other).client.mode == "fred"
    assert configuration.get_config().client.mode == "synthetic"


def test_invalid_file_values_raise(configure_cache):
    configure_cache({"storage": {"backend": "sqlite"}})

    with pytest.raises(ConfigurationError):
        configuration.get_config()


def test_override_context_manager(configure_cache):
    configure_cache({})
    custom = SeriesCacheConfig(client=ClientConfig(mode="synthetic", seed="x"))

    with configuration.config_override(custom):
        assert configuration.get_config() is custom
        assert configuration.get_config_path() is None
    assert configuration.get_config().client.mode == "fred"

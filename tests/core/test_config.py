"""Tests for configuration parsing."""

from pathlib import Path

import pytest

from kbsync.core.config import (
    DEFAULT_URL,
    ConfigError,
    StoreConfig,
    SyncConfig,
    load_config_from_env,
    parse_duration,
)


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_strips_trailing_slash(self) -> None:
        """Base URL should be normalized."""
        config = StoreConfig(base_url="http://llm:3001/", api_key="k")

        assert config.base_url == "http://llm:3001"

    def test_default_timeout(self) -> None:
        config = StoreConfig(base_url="http://llm", api_key="k")

        assert config.timeout == 60.0


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_paths_are_converted(self) -> None:
        """String paths become Path objects."""
        config = SyncConfig(watch_dir="/data", state_path="/state/s.json")  # type: ignore[arg-type]

        assert config.watch_dir == Path("/data")
        assert config.state_path == Path("/state/s.json")

    def test_defaults(self, tmp_path: Path) -> None:
        config = SyncConfig(watch_dir=tmp_path, state_path=tmp_path / "s.json")

        assert config.workspace == "intels"
        assert config.sync_interval == 300.0
        assert config.extension == ".md"
        assert config.ignore_patterns == []

    def test_extension_gets_dot(self, tmp_path: Path) -> None:
        """An extension without a leading dot is normalized."""
        config = SyncConfig(watch_dir=tmp_path, state_path=tmp_path / "s", extension="txt")

        assert config.extension == ".txt"

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_rejects_non_positive_interval(self, tmp_path: Path, interval: float) -> None:
        with pytest.raises(ConfigError, match="sync interval"):
            SyncConfig(watch_dir=tmp_path, state_path=tmp_path / "s", sync_interval=interval)


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("5m", 300.0),
            ("90s", 90.0),
            ("1h30m", 5400.0),
            ("250ms", 0.25),
            ("1.5s", 1.5),
            ("42", 42.0),
            (" 2m ", 120.0),
        ],
    )
    def test_valid(self, text: str, seconds: float) -> None:
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "abc", "5x", "m5", "5m junk", "0s", "-3", "0", "nan", "inf"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ConfigError):
            parse_duration(text)


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_defaults(self) -> None:
        """Only the API key is required."""
        store, sync = load_config_from_env({"ANYTHINGLLM_API_KEY": "secret"})

        assert store is not None
        assert store.base_url == DEFAULT_URL
        assert store.api_key == "secret"
        assert sync.watch_dir == Path("/intels")
        assert sync.state_path == Path("/state/kb-maintainer.json")
        assert sync.workspace == "intels"
        assert sync.sync_interval == 300.0
        assert sync.ready_timeout == 300.0

    def test_overrides(self) -> None:
        env = {
            "ANYTHINGLLM_URL": "http://localhost:3001/",
            "ANYTHINGLLM_API_KEY": "secret",
            "ANYTHINGLLM_WORKSPACE": "research",
            "INTELS_DIR": "/data/notes",
            "STATE_PATH": "/var/lib/kb.json",
            "SYNC_INTERVAL": "30s",
            "READY_TIMEOUT": "1m",
        }

        store, sync = load_config_from_env(env)

        assert store is not None
        assert store.base_url == "http://localhost:3001"
        assert sync.workspace == "research"
        assert sync.watch_dir == Path("/data/notes")
        assert sync.state_path == Path("/var/lib/kb.json")
        assert sync.sync_interval == 30.0
        assert sync.ready_timeout == 60.0

    def test_empty_values_use_defaults(self) -> None:
        """Variables set to an empty string fall back to defaults."""
        _, sync = load_config_from_env(
            {"ANYTHINGLLM_API_KEY": "k", "ANYTHINGLLM_WORKSPACE": "", "SYNC_INTERVAL": ""}
        )

        assert sync.workspace == "intels"
        assert sync.sync_interval == 300.0

    def test_missing_api_key(self) -> None:
        with pytest.raises(ConfigError, match="ANYTHINGLLM_API_KEY"):
            load_config_from_env({})

    def test_api_key_optional(self) -> None:
        """Commands that never contact the store get no store config."""
        store, sync = load_config_from_env({"INTELS_DIR": "/notes"}, require_api_key=False)

        assert store is None
        assert sync.watch_dir == Path("/notes")

    def test_ignore_patterns(self) -> None:
        _, sync = load_config_from_env(
            {"ANYTHINGLLM_API_KEY": "k", "KBSYNC_IGNORE": "draft-*, ,*.tmp.md"}
        )

        assert sync.ignore_patterns == ["draft-*", "*.tmp.md"]

    def test_invalid_interval(self) -> None:
        with pytest.raises(ConfigError, match="SYNC_INTERVAL"):
            load_config_from_env({"ANYTHINGLLM_API_KEY": "k", "SYNC_INTERVAL": "often"})

    def test_invalid_ready_timeout(self) -> None:
        with pytest.raises(ConfigError, match="READY_TIMEOUT"):
            load_config_from_env({"ANYTHINGLLM_API_KEY": "k", "READY_TIMEOUT": "0"})

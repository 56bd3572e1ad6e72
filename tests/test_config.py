from pathlib import Path
from typing import List

import pytest

from tunedex.config import AppConfig, IndexConfig, Settings, cache_directory, index_path_for, load_settings
from tunedex.exceptions import ConfigError
from tunedex.index import song_index
from tunedex.index.song_index import open_server_index


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TUNEDEX_INDEX__BATCH_SIZE", raising=False)
    settings = Settings()

    assert settings.index.batch_size == 1000
    assert settings.index.score_threshold == 0.5
    assert settings.app.log_level == "INFO"


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TUNEDEX_INDEX__CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("TUNEDEX_INDEX__BATCH_SIZE", "250")
    monkeypatch.setenv("TUNEDEX_APP__LOG_LEVEL", "DEBUG")

    settings = load_settings()

    assert settings.index.cache_dir == tmp_path
    assert settings.index.batch_size == 250
    assert settings.app.log_level == "DEBUG"


def test_invalid_settings_raise_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUNEDEX_INDEX__BATCH_SIZE", "0")

    with pytest.raises(ConfigError):
        load_settings()


def test_cache_directory_prefers_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", "/somewhere/else")
    settings = Settings(index=IndexConfig(cache_dir=tmp_path))

    assert cache_directory(settings) == tmp_path


def test_cache_directory_uses_xdg_cache_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert cache_directory() == tmp_path / "tunedex"


def test_cache_directory_falls_back_to_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert cache_directory() == tmp_path / ".cache" / "tunedex"


def test_index_path_is_per_host_and_port(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert index_path_for("music.local", "6600") == tmp_path / "tunedex" / "music.local" / "6600"


def test_open_server_index_uses_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(song_index, "setup_logging", lambda level: None)
    settings = Settings(index=IndexConfig(cache_dir=tmp_path, batch_size=50, score_threshold=0.75))

    with open_server_index("localhost", "6600", settings=settings) as idx:
        assert idx.base_path == tmp_path / "localhost" / "6600"
        assert idx.batch_size == 50
        assert idx.score_threshold == 0.75
        assert (idx.state_path).read_text(encoding="utf-8") == "0\n"


def test_open_server_index_configures_logging_level(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    levels: List[str] = []
    monkeypatch.setattr(song_index, "setup_logging", levels.append)
    settings = Settings(app=AppConfig(log_level="DEBUG"), index=IndexConfig(cache_dir=tmp_path))

    with open_server_index("localhost", "6600", settings=settings):
        pass

    assert levels == ["DEBUG"]

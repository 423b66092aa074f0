"""Tests for configuration loading.

Run with: pytest tests/test_config.py -v
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from release_feed.config import (
    DEFAULT_PROJECTS,
    ErrorPolicy,
    FeedConfig,
    load_config,
    load_file_settings,
)
from release_feed.errors import ConfigError
from release_feed.schemas import App


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def environ() -> dict[str, str]:
    """A complete set of required environment variables."""
    return {
        "API_BASE": "https://gitlab.example.com",
        "WALLET_TOKEN": "wallet-secret",
        "HUB_TOKEN": "hub-secret",
        "KEYGUARD_TOKEN": "keyguard-secret",
    }


@pytest.fixture
def yaml_file(tmp_path: Path) -> Path:
    path = tmp_path / "feed.yaml"
    path.write_text(
        "projects:\n"
        "  Hub: apps/hub\n"
        "output_dir: dist/feeds\n"
        "timeout: 5\n"
        "error_policy: best-effort\n"
    )
    return path


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults(self, environ: dict[str, str]) -> None:
        config = load_config(environ=environ)
        assert config.api_base == "https://gitlab.example.com"
        assert config.projects == DEFAULT_PROJECTS
        assert config.output_dir == Path("public")
        assert config.timeout == 30.0
        assert config.error_policy == ErrorPolicy.FAIL_FAST

    def test_tokens_per_app(self, environ: dict[str, str]) -> None:
        config = load_config(environ=environ)
        assert config.token_for(App.WALLET) == "wallet-secret"
        assert config.token_for(App.HUB) == "hub-secret"
        assert config.token_for(App.KEYGUARD) == "keyguard-secret"

    def test_tokens_hidden_in_repr(self, environ: dict[str, str]) -> None:
        config = load_config(environ=environ)
        assert "wallet-secret" not in repr(config)

    @pytest.mark.parametrize("missing", ["API_BASE", "WALLET_TOKEN", "HUB_TOKEN", "KEYGUARD_TOKEN"])
    def test_missing_value(self, environ: dict[str, str], missing: str) -> None:
        del environ[missing]
        with pytest.raises(ConfigError, match=missing):
            load_config(environ=environ)

    def test_blank_value_counts_as_missing(self, environ: dict[str, str]) -> None:
        environ["HUB_TOKEN"] = "   "
        with pytest.raises(ConfigError, match="HUB_TOKEN"):
            load_config(environ=environ)

    def test_all_missing_values_reported(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(environ={})
        message = str(exc_info.value)
        for name in ("API_BASE", "WALLET_TOKEN", "HUB_TOKEN", "KEYGUARD_TOKEN"):
            assert name in message

    def test_env_overrides(self, environ: dict[str, str]) -> None:
        environ["OUTPUT_DIR"] = "out"
        environ["ERROR_POLICY"] = "best-effort"
        config = load_config(environ=environ)
        assert config.output_dir == Path("out")
        assert config.error_policy == ErrorPolicy.BEST_EFFORT

    def test_invalid_error_policy(self, environ: dict[str, str]) -> None:
        environ["ERROR_POLICY"] = "yolo"
        with pytest.raises(ConfigError):
            load_config(environ=environ)

    def test_yaml_settings(self, environ: dict[str, str], yaml_file: Path) -> None:
        config = load_config(yaml_file, environ=environ)
        assert config.project_for(App.HUB) == "apps/hub"
        assert config.project_for(App.WALLET) == "deployment/wallet"
        assert config.output_dir == Path("dist/feeds")
        assert config.timeout == 5.0
        assert config.error_policy == ErrorPolicy.BEST_EFFORT

    def test_env_wins_over_yaml(self, environ: dict[str, str], yaml_file: Path) -> None:
        environ["OUTPUT_DIR"] = "from-env"
        assert load_config(yaml_file, environ=environ).output_dir == Path("from-env")

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            load_config(environ={})

    def test_reads_dotenv(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A .env file in the working directory fills in the environment."""
        names = ("API_BASE", "WALLET_TOKEN", "HUB_TOKEN", "KEYGUARD_TOKEN")
        for name in names:
            monkeypatch.delenv(name, raising=False)
        (tmp_path / ".env").write_text(
            "API_BASE=https://gitlab.example.com\n"
            "WALLET_TOKEN=w\nHUB_TOKEN=h\nKEYGUARD_TOKEN=k\n"
        )
        monkeypatch.chdir(tmp_path)
        try:
            config = load_config()
        finally:
            for name in names:
                os.environ.pop(name, None)
        assert config.api_base == "https://gitlab.example.com"
        assert config.token_for(App.KEYGUARD) == "k"


# ---------------------------------------------------------------------------
# YAML file
# ---------------------------------------------------------------------------


class TestLoadFileSettings:
    """Tests for the optional YAML settings file."""

    def test_none_gives_defaults(self) -> None:
        settings = load_file_settings(None)
        assert settings.projects == {}
        assert settings.output_dir is None

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_file_settings(tmp_path / "nope.yaml").projects == {}

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_file_settings(path).timeout == 30.0

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("projects: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_file_settings(path)

    def test_unknown_app(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("projects:\n  Explorer: deployment/explorer\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_file_settings(path)

    def test_negative_timeout(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("timeout: -1\n")
        with pytest.raises(ConfigError):
            load_file_settings(path)


class TestFeedConfig:
    """Tests for the FeedConfig model itself."""

    def test_projects_default_not_shared(self) -> None:
        tokens = {app: "t" for app in App}
        first = FeedConfig(api_base="https://x", tokens=tokens)
        first.projects[App.HUB] = "changed"
        second = FeedConfig(api_base="https://x", tokens=tokens)
        assert second.projects[App.HUB] == "deployment/hub"

    def test_partial_tokens_rejected(self) -> None:
        with pytest.raises(ValidationError, match="tokens missing for: Hub, Keyguard"):
            FeedConfig(api_base="https://x", tokens={App.WALLET: "t"})

    def test_partial_projects_rejected(self) -> None:
        tokens = {app: "t" for app in App}
        with pytest.raises(ValidationError, match="projects missing for: Keyguard"):
            FeedConfig(
                api_base="https://x",
                tokens=tokens,
                projects={App.WALLET: "deployment/wallet", App.HUB: "deployment/hub"},
            )

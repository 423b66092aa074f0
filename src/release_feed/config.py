"""Runtime configuration for the release feed.

Configuration is resolved once at startup into a FeedConfig and passed
explicitly to the fetcher and the aggregator. Sources, highest first:
1. Process environment (after loading an optional .env file)
2. Optional YAML file for the non-secret settings
3. Defaults defined on the models below

Example YAML:

    projects:
      Wallet: deployment/wallet
      Hub: deployment/hub
      Keyguard: deployment/keyguard
    output_dir: public
    timeout: 30
    error_policy: fail-fast

The API base and the three tokens have no defaults. A missing value is
a startup error.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError, model_validator

from release_feed.errors import ConfigError
from release_feed.schemas import App

TOKEN_ENV_VARS: dict[App, str] = {
    App.WALLET: "WALLET_TOKEN",
    App.HUB: "HUB_TOKEN",
    App.KEYGUARD: "KEYGUARD_TOKEN",
}

DEFAULT_PROJECTS: dict[App, str] = {
    App.WALLET: "deployment/wallet",
    App.HUB: "deployment/hub",
    App.KEYGUARD: "deployment/keyguard",
}


class ErrorPolicy(StrEnum):
    """How the aggregator reacts to a failed application or a bad tag.

    FAIL_FAST: Abort the run, write nothing
    BEST_EFFORT: Skip the failed application or tag, write the rest
    """

    FAIL_FAST = "fail-fast"
    BEST_EFFORT = "best-effort"


class FileSettings(BaseModel):
    """Non-secret settings that may come from the YAML file."""

    projects: dict[App, str] = Field(default_factory=dict)
    output_dir: Path | None = None
    timeout: float = Field(30.0, gt=0)
    error_policy: ErrorPolicy | None = None


class FeedConfig(BaseModel):
    """Everything the pipeline needs to run.

    Attributes:
        api_base: Base URL of the hosting API (e.g., "https://gitlab.example.com")
        tokens: Per-application API token
        projects: Per-application project path on the hosting API
        output_dir: Directory the two feed documents are written to
        timeout: HTTP timeout in seconds for each tag request
        error_policy: Fail-fast or best-effort handling of failures
    """

    api_base: str = Field(..., min_length=1)
    tokens: dict[App, SecretStr]
    projects: dict[App, str] = Field(default_factory=lambda: dict(DEFAULT_PROJECTS))
    output_dir: Path = Path("public")
    timeout: float = Field(30.0, gt=0)
    error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST

    @model_validator(mode="after")
    def check_every_app_configured(self) -> "FeedConfig":
        """Every application needs both a token and a project path."""
        for name, mapping in (("tokens", self.tokens), ("projects", self.projects)):
            missing = [app.value for app in App if app not in mapping]
            if missing:
                raise ValueError(f"{name} missing for: {', '.join(missing)}")
        return self

    def token_for(self, app: App) -> str:
        return self.tokens[app].get_secret_value()

    def project_for(self, app: App) -> str:
        return self.projects[app]


def load_file_settings(path: str | Path | None) -> FileSettings:
    """Load the optional YAML settings file.

    Args:
        path: Path to the YAML file. None or a missing file gives defaults.

    Returns:
        The validated FileSettings

    Raises:
        ConfigError: If the YAML is invalid or fails validation
    """
    if path is None:
        return FileSettings()

    config_path = Path(path)
    if not config_path.exists():
        return FileSettings()

    try:
        raw = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    try:
        return FileSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> FeedConfig:
    """Resolve the full FeedConfig.

    Args:
        config_path: Optional YAML settings file
        environ: Environment mapping to read. Defaults to os.environ after
                 loading a .env file from the working directory.

    Returns:
        A validated FeedConfig

    Raises:
        ConfigError: If API_BASE or any token is missing, or a value is invalid
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    settings = load_file_settings(config_path)

    api_base = environ.get("API_BASE", "").strip()
    tokens = {app: environ.get(var, "").strip() for app, var in TOKEN_ENV_VARS.items()}

    missing = [] if api_base else ["API_BASE"]
    missing += [TOKEN_ENV_VARS[app] for app, token in tokens.items() if not token]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    values: dict[str, Any] = {
        "api_base": api_base,
        "tokens": tokens,
        "projects": {**DEFAULT_PROJECTS, **settings.projects},
        "timeout": settings.timeout,
    }
    output_dir = environ.get("OUTPUT_DIR") or settings.output_dir
    if output_dir:
        values["output_dir"] = output_dir
    error_policy = environ.get("ERROR_POLICY") or settings.error_policy
    if error_policy:
        values["error_policy"] = error_policy

    try:
        return FeedConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

CONFIG_PATH_ENV = "POPCORN_CONFIG"
DEFAULT_OMDB_BASE_URL = "https://www.omdbapi.com/"


class Settings(BaseModel):
    """Application configuration resolved from env vars and optional TOML files."""

    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")
    omdb_base_url: str = Field(default=DEFAULT_OMDB_BASE_URL, alias="OMDB_BASE_URL")
    request_timeout: float = Field(default=10.0, gt=0, alias="POPCORN_REQUEST_TIMEOUT")
    retry_attempts: int = Field(default=2, ge=1, alias="POPCORN_RETRY_ATTEMPTS")

    min_query_length: int = Field(default=3, ge=1, alias="POPCORN_MIN_QUERY_LENGTH")
    default_title: str = Field(default="usePopcorn", alias="POPCORN_DEFAULT_TITLE")
    max_rating: int = Field(default=10, ge=1, le=10, alias="POPCORN_MAX_RATING")

    model_config = {
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "extra": "ignore",
    }

    def require_omdb(self) -> None:
        """Ensure the OMDb API key is available."""
        if not self.omdb_api_key:
            raise SettingsError(
                "Missing OMDB_API_KEY. Configure environment or TOML file.",
            )


class SettingsError(RuntimeError):
    """Raised when configuration cannot be resolved."""


@dataclass(frozen=True)
class SettingsLoadResult:
    settings: Settings
    source_path: Path | None


def load_settings(config_path: Path | None = None, *, load_env: bool = True) -> SettingsLoadResult:
    """Load settings from .env files, environment variables, and optional TOML configuration."""

    if load_env:
        load_dotenv()

    resolved_path = _determine_config_path(config_path)
    config_data: dict[str, Any] = {}

    if resolved_path and resolved_path.exists():
        try:
            with resolved_path.open("rb") as handle:
                toml_payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise SettingsError(f"Invalid TOML in {resolved_path}: {exc}") from exc
        try:
            config_data = _flatten_toml(toml_payload)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Invalid value in {resolved_path}: {exc}") from exc

    try:
        env_data = _collect_env_overrides()
    except ValueError as exc:
        raise SettingsError(str(exc)) from exc
    merged = {**config_data, **env_data}

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc

    return SettingsLoadResult(settings=settings, source_path=resolved_path)


def _determine_config_path(config_path: Path | None) -> Path | None:
    if config_path:
        return config_path

    env_override = os.getenv(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()

    default_path = Path.home() / ".config" / "popcorn" / "config.toml"
    return default_path if default_path.exists() else None


def _flatten_toml(payload: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    omdb_cfg = payload.get("omdb", {})
    if "api_key" in omdb_cfg:
        result["omdb_api_key"] = omdb_cfg.get("api_key")
    if "base_url" in omdb_cfg:
        result["omdb_base_url"] = omdb_cfg.get("base_url")
    if "timeout" in omdb_cfg:
        result["request_timeout"] = float(omdb_cfg.get("timeout"))
    if "retry_attempts" in omdb_cfg:
        result["retry_attempts"] = int(omdb_cfg.get("retry_attempts"))

    search_cfg = payload.get("search", {})
    if "min_query_length" in search_cfg:
        result["min_query_length"] = int(search_cfg.get("min_query_length"))

    ui_cfg = payload.get("ui", {})
    if "default_title" in ui_cfg:
        result["default_title"] = ui_cfg.get("default_title")
    if "max_rating" in ui_cfg:
        result["max_rating"] = int(ui_cfg.get("max_rating"))

    return result


def _collect_env_overrides() -> dict[str, Any]:
    mapping: dict[str, str] = {
        "OMDB_API_KEY": "omdb_api_key",
        "OMDB_BASE_URL": "omdb_base_url",
        "POPCORN_REQUEST_TIMEOUT": "request_timeout",
        "POPCORN_RETRY_ATTEMPTS": "retry_attempts",
        "POPCORN_MIN_QUERY_LENGTH": "min_query_length",
        "POPCORN_DEFAULT_TITLE": "default_title",
        "POPCORN_MAX_RATING": "max_rating",
    }

    result: dict[str, Any] = {}
    for env_name, field in mapping.items():
        if env_name not in os.environ:
            continue
        value = os.environ[env_name]
        if field in {"retry_attempts", "min_query_length", "max_rating"}:
            result[field] = int(value)
        elif field == "request_timeout":
            result[field] = float(value)
        else:
            result[field] = value
    return result


__all__ = ["Settings", "SettingsError", "SettingsLoadResult", "load_settings"]

"""Configuration and environment for sre-assist."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sre_assist.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_LLM_MODEL = "gpt-4o-mini"

API_KEY_ENV_VARS = ("LLM_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY")
BASE_URL_ENV_VARS = ("LLM_BASE_URL", "OPENAI_BASE_URL", "ANTHROPIC_BASE_URL", "GOOGLE_BASE_URL")
MODEL_ENV_VARS = ("LLM_MODEL", "AI_MODEL_NAME", "OPENAI_MODEL", "ANTHROPIC_MODEL", "GOOGLE_MODEL")

MIN_API_KEY_LENGTH = 10


def osdctl_config_path() -> Path:
    """Location of the shared osdctl YAML config file."""
    return Path.home() / ".config" / "osdctl"


def _clean(value: str) -> str:
    return value.strip().strip("\"'").strip()


class OsdctlConfigSource(PydanticBaseSettingsSource):
    """Reads LLM settings from the osdctl YAML config (keys like OPENAI_API_KEY)."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None = None) -> None:
        super().__init__(settings_cls)
        self.path = path or osdctl_config_path()
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            logger.debug("Ignoring unreadable config file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        extra = field.json_schema_extra if isinstance(field.json_schema_extra, dict) else {}
        key = extra.get("config_key")
        value = self._data.get(key) if key else None
        if value is None:
            return None, field_name, False
        cleaned = _clean(str(value))
        return (cleaned or None), field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                data[key] = value
        return data


class ProviderEnvSource(PydanticBaseSettingsSource):
    """First non-blank value among a field's provider env vars (LLM_*, OPENAI_*, ...)."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        extra = field.json_schema_extra if isinstance(field.json_schema_extra, dict) else {}
        for name in extra.get("env_names", ()):
            value = os.environ.get(name, "").strip()
            if value:
                return value, field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                data[key] = value
        return data


class Settings(BaseSettings):
    """Settings resolved from flags, ~/.config/osdctl, provider env vars and SRE_ASSIST_* env."""

    model_config = SettingsConfigDict(
        env_prefix="SRE_ASSIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cluster CLIs
    oc_binary: str = Field(default="oc", description="OpenShift CLI executable")
    ocm_binary: str = Field(default="ocm", description="OCM CLI executable")
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig passed to oc; uses KUBECONFIG env or default location if unset",
    )
    context: str | None = Field(default=None, description="Kubeconfig context passed to oc")

    # LLM
    llm_api_key: str | None = Field(
        default=None,
        description="API key for the chat-completion endpoint",
        json_schema_extra={
            "config_key": "OPENAI_API_KEY",
            # the osdctl variable is consulted ahead of the generic list
            "env_names": ("OPENAI_API_KEY",) + API_KEY_ENV_VARS,
        },
    )
    llm_base_url: str = Field(
        default=DEFAULT_LLM_BASE_URL,
        description="Base URL of an OpenAI-compatible API",
        json_schema_extra={
            "config_key": "OPENAI_BASE_URL",
            "env_names": ("OPENAI_BASE_URL",) + BASE_URL_ENV_VARS,
        },
    )
    llm_model: str = Field(
        default=DEFAULT_LLM_MODEL,
        description="Model used for analysis",
        json_schema_extra={
            "config_key": "AI_MODEL_NAME",
            "env_names": ("AI_MODEL_NAME",) + MODEL_ENV_VARS,
        },
    )
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="LLM temperature")
    llm_max_tokens: int = Field(default=4000, ge=1, description="Max tokens per completion")
    llm_timeout: float = Field(default=120.0, gt=0, description="HTTP timeout in seconds")

    @field_validator("llm_api_key", "llm_base_url", "llm_model", mode="before")
    @classmethod
    def _strip_whitespace(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # flags > osdctl config file > provider env vars > SRE_ASSIST_* env > .env
        return (
            init_settings,
            OsdctlConfigSource(settings_cls),
            ProviderEnvSource(settings_cls),
            env_settings,
            dotenv_settings,
        )


def get_settings(**overrides: Any) -> Settings:
    """Return validated settings; ``None`` or empty overrides (unset flags) are ignored."""
    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None and v != ""})
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def validate_api_key(api_key: str | None) -> None:
    """Basic sanity checks; the endpoint itself decides whether the key is valid."""
    if not api_key:
        raise ConfigError("API key is empty")
    trimmed = api_key.strip()
    if trimmed != api_key:
        raise ConfigError(
            f"API key contains leading or trailing whitespace (length: {len(api_key)} -> {len(trimmed)} after trim)"
        )
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise ConfigError(
            f"API key appears too short (length: {len(api_key)}). Valid API keys are typically longer"
        )


def require_llm_settings(settings: Settings) -> None:
    """Fail early when analysis is requested without a usable API key."""
    if not settings.llm_api_key:
        found = [name for name in API_KEY_ENV_VARS if os.environ.get(name)]
        if found:
            raise ConfigError(
                f"LLM analysis enabled but API key from environment variable(s) {found} appears to be empty or invalid"
            )
        raise ConfigError(
            "LLM analysis enabled but no API key provided. Set --llm-api-key flag or one of these "
            "environment variables: " + ", ".join(API_KEY_ENV_VARS)
        )
    try:
        validate_api_key(settings.llm_api_key)
    except ConfigError as e:
        preview = settings.llm_api_key
        if len(preview) > 20:
            preview = preview[:20] + "..."
        raise ConfigError(
            f"LLM API key validation failed: {e}\n"
            f"Key preview (first 20 chars): {preview}\n"
            "Please verify your API key environment variable (LLM_API_KEY, OPENAI_API_KEY, etc.)"
        ) from e


def key_preview(api_key: str) -> str:
    """First and last 10 characters of the key, for display."""
    return f"{api_key[:10]}...{api_key[-10:]}"

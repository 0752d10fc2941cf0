"""hookgate configuration — loads from hookgate.yaml + environment."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

AuthenticationMode = Literal["none", "headerAuth"]
ResponseMode = Literal["onReceived", "lastNode"]

# Credential type id the header-auth mode resolves its secret under.
HEADER_AUTH_CREDENTIAL_TYPE = "hookgateApiKey"


def _load_yaml_config() -> dict[str, Any]:
    """Load hookgate.yaml from HOOKGATE_CONFIG_PATH or default locations."""
    config_path = os.getenv("HOOKGATE_CONFIG_PATH")
    search_paths = (
        [Path(config_path)]
        if config_path
        else [
            Path("/etc/hookgate/hookgate.yaml"),
            Path("hookgate.yaml"),
        ]
    )
    for path in search_paths:
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}
    return {}


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in text.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [str(value).strip()] if str(value).strip() else []


class HeaderAuthCredential(BaseModel):
    """Stored secret for header authentication."""

    header_name: str = Field(
        default="Authorization",
        description="Header to check, e.g. 'Authorization' or 'X-Api-Key'",
    )
    api_key: str = Field(default="", repr=False, description="Value the header must match")


class TriggerOptions(BaseSettings):
    """Admission and response options of the trigger endpoint."""

    ignore_bots: bool = Field(
        default=False,
        description="Reject requests from bots like link previewers and web crawlers",
    )
    ip_whitelist: str = Field(default="", description="Comma-separated allowed IPs. Empty = allow all")
    domain_whitelist: str = Field(
        default="",
        description="Comma-separated allowed domains. Empty = allow all",
    )
    response_code: int = Field(default=200, ge=100, le=599)
    response_data: str = Field(default="", description="Body returned once the event is accepted")
    no_response_body: bool = False

    model_config = SettingsConfigDict(env_prefix="HOOKGATE_OPTIONS_")

    @field_validator("ip_whitelist", "domain_whitelist", mode="before")
    @classmethod
    def _join_whitelist(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item).strip() for item in value if str(item).strip())
        return str(value)


class TriggerConfig(BaseSettings):
    """The single inbound webhook endpoint."""

    path: str = Field(default="change-this-path", description="HTTP path WAHA posts events to")
    events: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        description="Events to listen to: '*', 'self', or normalized event names",
    )
    authentication: AuthenticationMode = "none"
    response_mode: ResponseMode = "onReceived"
    options: TriggerOptions = Field(default_factory=TriggerOptions)
    outputs: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Delivery targets per channel token ('*', 'self', event, 'no_events')",
    )

    model_config = SettingsConfigDict(env_prefix="HOOKGATE_TRIGGER_")

    @field_validator("events", mode="before")
    @classmethod
    def _parse_events(cls, value: Any) -> list[str]:
        return _split_list(value)

    @field_validator("path")
    @classmethod
    def _strip_path(cls, value: str) -> str:
        return value.strip().strip("/")

    @field_validator("outputs", mode="before")
    @classmethod
    def _parse_outputs(cls, value: Any) -> dict[str, list[str]]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): _split_list(targets) for key, targets in value.items()}
        return value


class HookgateConfig(BaseSettings):
    """Root hookgate configuration."""

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8000, description="Server bind port")

    catalog_path: str | None = Field(default=None, description="Override the bundled event catalog")
    forward_timeout_s: int = Field(default=10, gt=0, description="Timeout for webhook delivery targets")
    trusted_proxy_hops: int = Field(
        default=0,
        ge=0,
        description="X-Forwarded-For entries appended by proxies you run. 0 = ignore the header",
    )

    # Sub-configs
    trigger: TriggerConfig = Field(default_factory=TriggerConfig)
    credentials: dict[str, HeaderAuthCredential] = Field(default_factory=dict)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'console'")

    model_config = SettingsConfigDict(
        env_prefix="HOOKGATE_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls) -> HookgateConfig:
        """Load config from YAML; env vars fill in whatever the YAML leaves unset."""
        yaml_cfg = _load_yaml_config()

        trigger_data = yaml_cfg.pop("trigger", {}) or {}
        options_data = trigger_data.pop("options", {}) or {}
        credentials_data = yaml_cfg.pop("credentials", {}) or {}

        # Only pass YAML sub-configs if they have data;
        # otherwise let pydantic-settings pick up env vars
        kwargs: dict[str, Any] = {**yaml_cfg}
        if trigger_data or options_data:
            if options_data:
                trigger_data["options"] = TriggerOptions(**options_data)
            kwargs["trigger"] = TriggerConfig(**trigger_data)
        if credentials_data:
            kwargs["credentials"] = {
                name: HeaderAuthCredential(**(data or {})) for name, data in credentials_data.items()
            }

        return cls(**kwargs)


# Singleton
_config: HookgateConfig | None = None


def get_config() -> HookgateConfig:
    """Get or create the global config."""
    global _config
    if _config is None:
        _config = HookgateConfig.load()
    return _config

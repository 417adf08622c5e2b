"""Configuration models and loading."""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "gemini-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

UPSTREAM_BASE_URL = "https://generativelanguage.googleapis.com"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080
    # Adds stack traces to 500 bodies; never enable in production
    debug: bool = False


class UpstreamSettings(BaseModel):
    base_url: str = UPSTREAM_BASE_URL
    timeout: float | None = 300.0
    api_key_env: str = "GEMINI_API_KEY"


class RoutingSettings(BaseModel):
    prefixes: list[str] = Field(
        default_factory=lambda: ["/api/api-proxy/", "/api-proxy/", "/api/proxy/"]
    )
    client_mode: Literal["direct", "proxy"] = "direct"
    proxy_base: str = "http://127.0.0.1:8080/api-proxy"


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "erpnext-api-tester"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_TARGET = "https://erpnext-kiran.m.erpnext.com"
TARGET_HEADER = "X-Target-URL"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3001
    debug: bool = True
    static_dir: str = "build"


class UpstreamSettings(BaseModel):
    default_target: str = DEFAULT_TARGET
    target_header: str = TARGET_HEADER
    path_prefix: str = "/api"
    timeout: float = 30.0


class LimitsSettings(BaseModel):
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keep_alive_timeout: int = 5


class ErpnextSettings(BaseModel):
    """Credentials used by `--check`; the proxy itself never reads them."""

    base_url: str = ""
    api_key: str = ""
    api_secret: str = ""


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    erpnext: ErpnextSettings = Field(default_factory=ErpnextSettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    config = _read_config(config_file)

    port = os.environ.get("PORT")
    if port and port.isdigit():
        config.proxy.port = int(port)
    return config


def _read_config(config_file: Path) -> Config:
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

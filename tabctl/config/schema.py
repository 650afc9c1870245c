"""Configuration schema using Pydantic.

Single data model and defaults, persisted to ~/.tabctl/config.json.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class BridgeConfig(BaseModel):
    """Bridge (native host) process settings."""
    socket_dir: str = ""  # Empty: $XDG_RUNTIME_DIR, else /tmp
    request_timeout_s: float = 10.0  # bridge -> browser hop
    shared_label: str = "default"  # Label for the single-browser shared socket


class ClientConfig(BaseModel):
    """CLI-side discovery and fan-out settings."""
    known_browsers: list[str] = Field(default_factory=lambda: ["firefox", "chrome"])
    request_timeout_s: float = 10.0  # client -> bridge hop


class LoggingConfig(BaseModel):
    """Rotating file sink settings (loguru)."""
    level: str = "INFO"
    rotation: str = "10 MB"
    retention: str = "14 days"


class InstallConfig(BaseModel):
    """Native messaging host registration."""
    host_name: str = "tabctl"
    chrome_extension_id: str = ""
    firefox_extension_id: str = "tabctl@tabctl"


class Config(BaseSettings):
    """Root configuration for tabctl."""
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)

    model_config = ConfigDict(
        env_prefix="TABCTL_",
        env_nested_delimiter="__",
    )

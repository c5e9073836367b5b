"""Centralized client configuration."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from gpsd_json.client.session import REQUIRED_VERSION, ProtocolVersion

DEFAULT_DATA_DIR = Path.home() / ".local" / "gpsd-json"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2947


class Config(BaseModel):
    """Where the daemon lives and which protocol version the client requires."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(description="Base directory for configuration and logs")
    host: str = Field(default=DEFAULT_HOST, min_length=1, description="Daemon host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Daemon TCP port")
    proto_major: int = Field(default=REQUIRED_VERSION.major, ge=0, description="Required protocol major version")
    proto_minor: int = Field(default=REQUIRED_VERSION.minor, ge=0, description="Minimum protocol minor version")

    @computed_field(description="Optional TOML configuration file")
    @property
    def config_path(self) -> Path:
        """Optional TOML configuration file."""
        return self.data_dir / "config.toml"

    @computed_field(description="Log file")
    @property
    def log_path(self) -> Path:
        """Log file."""
        return self.data_dir / "gpsd-json.log"

    @property
    def required_version(self) -> ProtocolVersion:
        """Protocol version the daemon must support."""
        return ProtocolVersion(major=self.proto_major, minor=self.proto_minor)

    @staticmethod
    def build(data_dir: Path | None = None, *, host: str | None = None, port: int | None = None) -> Config:
        """Build a Config from defaults, optional config.toml, and explicit overrides.

        Explicit ``host``/``port`` arguments win over the file.
        """
        resolved_dir = data_dir if data_dir is not None else DEFAULT_DATA_DIR
        config_path = resolved_dir / "config.toml"

        kwargs: dict[str, Any] = {"data_dir": resolved_dir}
        if config_path.is_file():
            with config_path.open("rb") as f:
                toml_data = tomllib.load(f)
            if isinstance(toml_data.get("host"), str):
                kwargs["host"] = toml_data["host"]
            for key in ("port", "proto_major", "proto_minor"):
                if isinstance(toml_data.get(key), int):
                    kwargs[key] = toml_data[key]
        if host is not None:
            kwargs["host"] = host
        if port is not None:
            kwargs["port"] = port

        return Config(**kwargs)

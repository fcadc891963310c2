"""WebSocket server transport configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_CLIENT_ORIGIN = "http://localhost:3000"


class WebSocketServerConfig(BaseModel):
    """Configuration for ``WebSocketServerTransport``."""

    host: str = "localhost"
    port: int = Field(default=4000, ge=0, le=65535)
    allowed_origins: list[str] | None = None
    health_path: str = "/health"
    max_size: int = Field(default=2**20, ge=1)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        """Accept a comma-separated string such as ``"https://a.io,https://b.io"``."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, **overrides: Any
    ) -> WebSocketServerConfig:
        """Build a config from ``PORT`` and ``CLIENT_URL``.

        ``CLIENT_URL`` is a comma-separated origin list and defaults to
        ``DEFAULT_CLIENT_ORIGIN``, so an unset variable never opens the
        server to every origin.
        """
        env = os.environ if env is None else env
        values: dict[str, Any] = {
            "allowed_origins": env.get("CLIENT_URL") or DEFAULT_CLIENT_ORIGIN,
        }
        if env.get("PORT"):
            values["port"] = int(env["PORT"])
        values.update(overrides)
        return cls(**values)

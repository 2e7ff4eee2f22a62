"""
soar_socket.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (admin key, JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `SOAR_`), defaults safe for local dev.
    """

    model_config = SettingsConfigDict(env_prefix="SOAR_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "soar-socket"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Admin auth. An empty admin key disables key-based admin access entirely.
    admin_key: str = Field(default="", repr=False)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "soar-socket"
    jwt_audience: str = "soar-admin"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    admin_token_ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)

    # Persistence (role store)
    database_url: str = "sqlite+aiosqlite:///./users.db"

    # Realtime (served by `websockets` next to the HTTP API)
    websocket_host: str = "0.0.0.0"
    websocket_port: int = Field(default=8081, ge=0, le=65535)
    websocket_path: str = "/websocket"
    heartbeat_interval_secs: float = Field(default=30.0, gt=0)
    outbound_queue_size: int = Field(default=256, ge=1)
    welcome_message: str = "Welcome to Soar Socket!"

    # Shop
    shop_base_url: str = "https://shop.soarclient.com/premium"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()

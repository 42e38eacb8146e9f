"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEPLAN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Rider Route Planner API"
    api_prefix: str = "/api"
    dispatch_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the shipment/dispatch backend (e.g., https://api.example.com/api).",
    )
    dispatch_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the dispatch backend.",
    )
    dispatch_timeout_seconds: float = Field(default=15.0, gt=0.0)
    dispatch_max_retries: int = Field(default=2, ge=0)
    dispatch_backoff_seconds: float = Field(default=0.5, ge=0.0)
    default_origin_latitude: float = Field(
        default=33.6844,
        description="Fallback route origin when the rider position is unknown (Islamabad city centre).",
    )
    default_origin_longitude: float = Field(default=73.0479)
    default_service_minutes: int = Field(default=12, ge=0)
    inter_stop_buffer_minutes: int = Field(default=12, ge=0)
    assignable_statuses: tuple[str, ...] = Field(
        default=("active", "draft", "pending", "assigned"),
        description="Route assignment statuses requested from the dispatch backend.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("assignable_statuses", "frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()

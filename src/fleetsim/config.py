"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETSIM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Fleet Dispatch Simulator API"
    api_prefix: str = "/api"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    graphhopper_base_url: Optional[str] = Field(
        default="http://localhost:8989",
        description="Base URL for the GraphHopper routing service.",
    )
    graphhopper_profile: str = Field(default="car", description="Routing profile sent with every query.")
    graphhopper_locale: str = "en-US"
    graphhopper_api_key: Optional[str] = Field(
        default=None,
        description="API key for hosted GraphHopper instances; self-hosted servers ignore it.",
    )
    graphhopper_timeout_seconds: float = Field(default=10.0, gt=0.0)
    graphhopper_max_retries: int = Field(default=2, ge=0)
    graphhopper_backoff_seconds: float = Field(default=0.5, ge=0.0)

    routing_max_parallel_requests: int = Field(default=6, ge=1)
    max_alternative_paths: int = Field(default=3, ge=1)
    shortest_distance_influence: float = Field(
        default=200.0,
        ge=0.0,
        description="custom_model distance_influence used for the 'shortest' weighting query.",
    )
    detour_trigger_factor: float = Field(
        default=2.0,
        gt=0.0,
        description="A hazard gets a detour waypoint when the straight trip passes within this many radii.",
    )
    detour_offset_factor: float = Field(
        default=1.5,
        gt=1.0,
        description="Distance of a detour waypoint from the hazard centre, in radii.",
    )
    penalty_min_sample_points: int = Field(default=10, ge=2)
    penalty_subdivisions: int = Field(default=10, ge=1)

    simulation_tick_ms: int = Field(default=100, ge=10)
    default_speed_kmh: float = Field(default=50.0, gt=0.0)
    arrival_tolerance_km: float = Field(
        default=0.01,
        ge=0.0,
        description="Remaining distance under which a route vertex counts as reached.",
    )
    simulation_clock_enabled: bool = True
    route_worker_threads: int = Field(default=4, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
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

    @field_validator("graphhopper_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None


settings = Settings()

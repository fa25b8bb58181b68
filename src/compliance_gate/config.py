"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="CG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Compliance Gate API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    data_root: Path = Field(default=Path("data"), description="Root directory for reference data and audit output.")
    zones_file: Path = Field(
        default=Path("data/zones.json"),
        description="Exclusion and delivery zone reference data (JSON).",
    )
    exclusion_workbook: Optional[Path] = Field(
        default=None,
        description="Optional Excel workbook listing exclusion zones (Name, Category, Latitude, Longitude, Radius).",
    )
    operating_timezone: str = Field(
        default="Asia/Kolkata",
        description="Timezone that defines calendar days for the volume ledger and age checks.",
    )
    minimum_age: int = Field(default=21, ge=0)
    daily_limit_ml: int = Field(default=2000, gt=0, description="Per identity regulated volume cap per day.")
    delivery_start_hour: int = Field(default=10, ge=0, le=23)
    delivery_end_hour: int = Field(default=22, ge=1, le=24)
    geocoder_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of a Nominatim-compatible reverse geocoding service.",
    )
    geocoder_max_retries: int = Field(default=3, ge=0)
    geocoder_backoff_seconds: float = Field(default=1.0, ge=0.0)
    kyc_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the identity verification (KYC) provider; serves GET /kyc/{identity_id}.",
    )
    kyc_api_key: Optional[str] = Field(default=None, description="Bearer token for the KYC provider.")
    kyc_max_retries: int = Field(default=3, ge=0)
    kyc_backoff_seconds: float = Field(default=1.0, ge=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", "zones_file", "exclusion_workbook", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("operating_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

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

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.operating_timezone)


settings = Settings()

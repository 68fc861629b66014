"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database (document store backend) ===
    database_url: str = Field(
        default="sqlite:///./routes.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Media service ===
    media_upload_url: Optional[str] = Field(
        default=None,
        description="Upload endpoint of the media service (unsigned upload)"
    )
    media_upload_preset: Optional[str] = Field(default=None)
    media_api_key: Optional[str] = Field(default=None)
    media_folder: str = Field(default="routes")
    media_timeout_seconds: float = Field(default=30.0)

    # === Static map thumbnails ===
    static_map_base_url: str = Field(
        default="https://api.mapbox.com/styles/v1/mapbox",
        description="Static map image API base URL"
    )
    static_map_token: Optional[str] = Field(default=None)
    static_map_style: str = Field(default="satellite-streets-v12")
    thumbnail_width: int = Field(default=400)
    thumbnail_height: int = Field(default=300)
    thumbnail_max_points: int = Field(default=100)

    # === Route summary ===
    loop_threshold_m: float = Field(
        default=5000.0,
        description="Start/end distance under which a route counts as a loop"
    )
    unpaved_segment_percent: float = Field(
        default=10.0,
        description="Unpaved share assumed for a segment with any unpaved section"
    )

    # === Uploads ===
    max_gpx_size_mb: int = Field(default=20)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @property
    def media_configured(self) -> bool:
        """True when uploads can be sent to the media service."""
        return bool(self.media_upload_url)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()

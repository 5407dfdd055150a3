"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.contour_builder import TriangulateMode


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CAVEMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Map Generation Configuration
    default_map_width: int = Field(default=80, description="Default map width")
    default_map_height: int = Field(default=60, description="Default map height")
    max_map_width: int = Field(default=400, description="Max allowed map width")
    max_map_height: int = Field(default=400, description="Max allowed map height")

    # Contouring Configuration
    triangulate_mode: TriangulateMode = Field(default=TriangulateMode.ROWS, description="Cell traversal order (rows, columns, spiral)")
    triangulate_max_ratio: float = Field(default=3.0, ge=1.0, description="Max aspect ratio of merged solid blocks")


settings = Settings()

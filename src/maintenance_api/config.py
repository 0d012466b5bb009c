from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # API Configuration
    api_title: str = "Maintenance Scheduling API"
    api_version: str = "0.1.0"
    api_description: str = (
        "Recurring maintenance planning and shift-aware daily task scheduling API"
    )

    # Server Configuration
    host: str = "0.0.0.0"  # nosec B104
    port: int = 8000
    debug: bool = False

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./maintenance.db",
        description="SQLAlchemy database URL",
    )

    # Environment
    environment: str = Field(
        default="development", pattern="^(development|staging|production|test)$"
    )

    # CORS Configuration
    cors_origins: list[str] | str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Allowed CORS origins, list or comma-separated string",
    )

    # Scheduling defaults
    default_break_duration: int = Field(
        default=30, ge=0, description="Meal break length in minutes"
    )
    default_buffer_minutes: int = Field(
        default=5, ge=0, description="Gap kept around every scheduled task"
    )

    # Rate limits (slowapi syntax)
    schedule_rate_limit: str = "60/minute"
    health_rate_limit: str = "1000/minute"

    # Performance Monitoring
    slow_request_threshold_seconds: float = Field(
        default=1.0, description="Requests slower than this are logged as warnings"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list, supporting both list and comma-separated string"""
        if isinstance(self.cors_origins, str):
            return [
                origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
            ]
        return self.cors_origins

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )


# Global settings instance
settings = Settings()

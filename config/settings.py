"""
Configuration management for the timetable engine.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Class Timetable Engine"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Timetable
    period_length_minutes: int = 40
    school_days: List[str] = ["monday", "tuesday", "wednesday", "thursday", "friday"]

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    @property
    def effective_log_level(self) -> str:
        """DEBUG whenever debug mode is on, the configured level otherwise."""
        return "DEBUG" if self.debug else self.log_level.upper()

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

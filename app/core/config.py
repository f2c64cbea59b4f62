# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "roster-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8005"))

    ROSTER_API_URL: str = os.getenv("ROSTER_API_URL", "http://roster-api:3000")
    ROSTER_API_TIMEOUT: float = float(os.getenv("ROSTER_API_TIMEOUT", "5.0"))
    LOAD_SNAPSHOT_ON_STARTUP: bool = (
        os.getenv("LOAD_SNAPSHOT_ON_STARTUP", "false").lower() == "true"
    )

    # Wall clock used to decide "today" and the time of day on the dashboard
    TIMEZONE: str = os.getenv("TIMEZONE", "Europe/London")

    CYCLE_CACHE_ENABLED: bool = (
        os.getenv("CYCLE_CACHE_ENABLED", "true").lower() == "true"
    )
    CYCLE_CACHE_TTL_SECONDS: float = float(os.getenv("CYCLE_CACHE_TTL_SECONDS", "300"))

    # cycle_block | next_on_period
    SUPERVISOR_ROTATION_RULE: str = os.getenv("SUPERVISOR_ROTATION_RULE", "cycle_block")
    DAY_SHIFT_HOURS: str = os.getenv("DAY_SHIFT_HOURS", "08:00-20:00")
    NIGHT_SHIFT_HOURS: str = os.getenv("NIGHT_SHIFT_HOURS", "20:00-08:00")

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def split_hours(value: str) -> tuple[str, str]:
        """'08:00-20:00' -> ('08:00', '20:00')."""
        start, _, end = value.partition("-")
        return start.strip(), end.strip()


settings = Settings()

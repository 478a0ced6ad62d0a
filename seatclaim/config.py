"""Application configuration settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Seat Claim API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "seatclaim"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    REDIS_DB: int = 0

    # Reservation settings
    RESERVATION_DEFAULT_MINUTES: int = 15
    RESERVATION_MAX_MINUTES: int = 60
    EXTEND_DEFAULT_MINUTES: int = 10
    EXTEND_MAX_MINUTES: int = 30

    # Ticket policy
    CANCELLATION_BLACKOUT_HOURS: int = 24
    TRANSFER_BLACKOUT_HOURS: int = 48
    DEFAULT_CURRENCY: str = "INR"

    # Expiry sweep
    SWEEP_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: int = 30

    # Simulated payment gateway
    PAYMENT_PROCESSING_DELAY_SECONDS: float = 2.0
    PAYMENT_SUCCESS_RATE: float = 0.9

    # Distributed Lock settings
    LOCK_TIMEOUT_SECONDS: int = 30

    @property
    def database_url(self) -> str:
        """Get async database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def redis_url(self) -> str:
        """Get Redis URL."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

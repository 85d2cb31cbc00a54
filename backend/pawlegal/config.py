from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Paw Legal backend settings.

    All values are loaded from environment variables.
    A .env file in the backend directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Database ---
    DATABASE_URL: str = "postgresql+asyncpg://pawlegal:pawlegal@db:5432/pawlegal"

    # --- JWT ---
    JWT_SECRET: str = "change-this-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # --- Trash ---
    TRASH_RETENTION_DAYS: int = 30
    TRASH_EXPIRING_SOON_DAYS: int = 7
    TRASH_PURGE_ENABLED: bool = True
    TRASH_PURGE_INTERVAL_HOURS: float = 24.0

    # --- PDF exports ---
    DISPLAY_TIMEZONE: str = "Europe/Paris"
    PDF_COMPRESSION: bool = True

    # --- Letterhead ---
    PLATFORM_NAME: str = "Paw Legal"
    PLATFORM_SUBTITLE: str = "Service d'accompagnement juridique"
    PLATFORM_COUNTRY: str = "France"
    PLATFORM_EMAIL: str = "contact@pawlegal.fr"
    PLATFORM_WEBSITE: str = "https://www.pawlegal.fr"
    PLATFORM_PHONE: str = "07 68 03 33 58"

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()

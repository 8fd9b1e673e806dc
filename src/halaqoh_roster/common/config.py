'''
Holds all the configurations
'''
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Manages application configuration using environment variables.
    """
    # Application Metadata
    APP_NAME: str = "Halaqoh Roster Backend"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Roster, provisioning and reporting API for Quran memorization circles."
    TEST_MODE: bool = False

    # Database URL
    DATABASE_URL_PROD: str = "sqlite+aiosqlite:///./halaqoh_roster.db"
    DATABASE_URL_TEST: str = "sqlite+aiosqlite://"
    CREATE_TABLES_ON_STARTUP: bool = True
    @property
    def database_url(self) -> str:
        """
        Dynamically returns the correct database URL based on the test_mode flag.
        """
        if self.TEST_MODE:
            return self.DATABASE_URL_TEST
        return self.DATABASE_URL_PROD

    # JWT Settings
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"

    # Identity policy
    MIN_PASSWORD_LENGTH: int = 6

    # Shown in place of a missing or inactive join target
    DISPLAY_PLACEHOLDER: str = "-"

    # First operator account, created on startup when both are set
    BOOTSTRAP_ADMIN_EMAIL: str | None = None
    BOOTSTRAP_ADMIN_PASSWORD: str | None = None

    BACKEND_CORS_ORIGINS: list[str] = []

    class Config:
        env_file = ".env" # automatically loads the .env

# Create a single, importable instance of the settings
settings = Settings()

"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from enum import Enum

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeletionPolicy(str, Enum):
    """What a sync pass does with persisted permissions no longer declared in code"""

    RETAIN_ON_MISSING = "retain-on-missing"
    DELETE_ON_MISSING = "delete-on-missing"


class SyncEnv:
    """Permission sync environment labels"""

    DEV = "dev"
    PROD = "prod"


def deletion_policy_for(env: str | None) -> DeletionPolicy:
    """Map a deployment label (dev/prod) to the deletion policy it implies."""
    if env == SyncEnv.PROD:
        return DeletionPolicy.DELETE_ON_MISSING
    return DeletionPolicy.RETAIN_ON_MISSING


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Permission Sync"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./permissions.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False
    DB_CREATE_TABLES: bool = True

    # Permission sync
    STORAGE_PERMISSIONS: bool = True
    # Developers often share one database while declaring different permissions,
    # so only "prod" removes permissions that are missing from code
    PERMISSION_SYNC_ENV: str = Field(default=SyncEnv.DEV, pattern="^(dev|prod)$")
    BATCH_SIZE: int = Field(default=1000, gt=0)
    # Placeholder menu id stamped on every synthesized descriptor
    PERMISSION_MENU_ID: int = 3
    PERMISSION_SYNC_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def deletion_policy(self) -> DeletionPolicy:
        return deletion_policy_for(self.PERMISSION_SYNC_ENV)


# Create global settings instance

load_dotenv()
settings = Settings()

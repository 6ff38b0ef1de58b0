from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "SmartClass"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 3001

    DATABASE_URL: str = "sqlite:///./smartclass.db"

    # DEV default only, override SECRET_KEY in the environment.
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # Submission attachments
    UPLOAD_DIR: str = "uploads/assignments"
    MAX_ATTACHMENTS: int = 5
    MAX_ATTACHMENT_BYTES: int = 10 * 1024 * 1024

    # Join codes: attempts per code length before giving up
    CLASS_CODE_ATTEMPTS: int = 10

    # submissions within this many minutes after the due date are not late
    GRACE_PERIOD_MINUTES: int = 10


@lru_cache
def get_settings() -> Settings:
    return Settings()

# agriconnect/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

INSECURE_DEFAULT_SECRET = "agriconnect-secret-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)

    # Application Settings
    APP_NAME: str = "Agriconnect API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Security Settings
    SECRET_KEY: str = Field(default=INSECURE_DEFAULT_SECRET, alias="JWT_SECRET")
    ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7

    # Database Settings
    MONGODB_URI: str = "mongodb://localhost:27017/agriconnect"
    MONGODB_DB: str = "agriconnect"

    # OTP Settings
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3
    OTP_SWEEP_INTERVAL_SECONDS: int = 5 * 60
    OTP_STORE_BACKEND: str = "memory"  # memory | redis
    OTP_SEND_MAX_PER_WINDOW: int = 5
    OTP_SEND_WINDOW_SECONDS: int = 15 * 60

    # SMS Settings
    SMS_PROVIDER: str = "console"  # console | twilio
    SMS_SEND_TIMEOUT_SECONDS: int = 10
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Redis (shared OTP store / rate limiting)
    REDIS_URL: Optional[str] = None

    # CORS Settings (comma-separated)
    ALLOWED_ORIGINS: str = "*"

    # Middleware settings
    GZIP_MIN_SIZE: int = 500
    RATE_LIMIT_PER_MINUTE: int = 120

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    def check_production_secrets(self) -> None:
        """Refuse to run in production with the built-in signing key."""
        if self.is_production and (not self.SECRET_KEY or self.SECRET_KEY == INSECURE_DEFAULT_SECRET):
            raise RuntimeError("JWT_SECRET must be set in production")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()

import functools

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', env_ignore_empty=True, extra='ignore')

DEFAULT_ALLOWED_ORIGINS = ",".join([
    "https://rjportfolio-0u3b.onrender.com",
    "http://localhost:5500",
    "http://localhost:5501",
    "http://127.0.0.1:5500"])


class EmailSettings(BaseSettings):
    """
        Notification provider settings, SMTP relay or SendGrid API
        when neither is configured notifications are disabled
    """
    EMAIL_PROVIDER: str | None = Field(default=None)
    SMTP_HOST: str | None = Field(default=None)
    SMTP_PORT: int = Field(default=587)
    SMTP_SECURE: bool = Field(default=False)
    SMTP_USER: str | None = Field(default=None)
    SMTP_PASS: str | None = Field(default=None)
    SMTP_VERIFY: bool = Field(default=True)
    SMTP_VALIDATE_CERTS: bool = Field(default=True)
    SMTP_TIMEOUT: float | None = Field(default=None)
    SENDGRID_API_KEY: str | None = Field(default=None)
    SENDER_EMAIL: str | None = Field(default=None)
    RECEIVER_EMAIL: str | None = Field(default=None)

    model_config = _ENV_CONFIG

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS)

    @property
    def sendgrid_configured(self) -> bool:
        return bool(self.SENDGRID_API_KEY)


class RateLimitSettings(BaseSettings):
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=15 * 60)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=5)

    model_config = _ENV_CONFIG


class StorageSettings(BaseSettings):
    MESSAGES_FILE: str = Field(default="data/messages.json")
    STORE_SERIALIZE_WRITES: bool = Field(default=True)

    model_config = _ENV_CONFIG


class CorsSettings(BaseSettings):
    ALLOWED_ORIGINS: str = Field(default=DEFAULT_ALLOWED_ORIGINS)

    model_config = _ENV_CONFIG

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',') if origin.strip()]


class Logging(BaseSettings):
    LOG_FILENAME: str = Field(default="contact_api.logs")
    LOG_TO_FILE: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    APP_NAME: str = Field(default="contact_api")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    DEBUG: bool = False
    TRUST_PROXY: bool = True
    EXPOSE_CONFIG_STATUS: bool = False
    MAX_BODY_BYTES: int = Field(default=10 * 1024)
    EMAIL_SETTINGS: EmailSettings = Field(default_factory=EmailSettings)
    RATE_LIMIT: RateLimitSettings = Field(default_factory=RateLimitSettings)
    STORAGE: StorageSettings = Field(default_factory=StorageSettings)
    CORS: CorsSettings = Field(default_factory=CorsSettings)
    LOGGING: Logging = Field(default_factory=Logging)

    model_config = _ENV_CONFIG


@functools.lru_cache
def config_instance() -> Settings:
    return Settings()

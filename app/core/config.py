from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    ENVIRONMENT: str = "development"  # "development" or "production"

    @property
    def is_production(self):
        return self.ENVIRONMENT == "production"

    ADMIN_API_KEY: str
    FRONTEND_URL: str = "http://localhost:4200"

    # Detached work (seed pipeline, verification email)
    REDIS_URL: str = "redis://localhost:6379/0"
    PROVISIONING_QUEUE_NAME: str = "provisioning"
    PROVISIONING_JOB_TIMEOUT: str = "10m"
    PROVISIONING_STATUS_TTL_SECONDS: int = 3600

    # Stripe Connect (hosted onboarding links)
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_CONNECT_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Square (OAuth2 authorization code)
    SQUARE_APPLICATION_ID: Optional[str] = None
    SQUARE_APPLICATION_SECRET: Optional[str] = None
    SQUARE_ENVIRONMENT: str = "sandbox"  # "sandbox" or "production"

    @property
    def square_base_url(self):
        if self.SQUARE_ENVIRONMENT == "production":
            return "https://connect.squareup.com"
        return "https://connect.squareupsandbox.com"

    PROVIDER_TIMEOUT_SECONDS: float = 15.0

    # Provider tokens at rest
    ENCRYPTION_KEY: Optional[str] = None

    # Outbound email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_SSL: bool = False
    EMAIL_SENDER: str = "noreply@example.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()

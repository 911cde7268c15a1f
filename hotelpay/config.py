from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseModel):
    """Credentials and endpoints handed to the Razorpay client and webhook reconciler."""

    key_id: str
    key_secret: str
    webhook_secret: str
    base_url: str = "https://api.razorpay.com/v1"
    default_currency: str = "INR"
    timeout: float = 10.0


class Settings(BaseSettings):
    APP_NAME: str = "hotelpay"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite+aiosqlite:///./hotelpay.db"
    # Razorpay credentials (configure in .env)
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_WEBHOOK_SECRET: str = ""
    RAZORPAY_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_CURRENCY: str = "INR"
    # used when a booking only carries a phone number
    FALLBACK_EMAIL_DOMAIN: str = "bookneoapp.com"
    SENTRY_DSN: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    def gateway_config(self) -> GatewayConfig:
        return GatewayConfig(
            key_id=self.RAZORPAY_KEY_ID,
            key_secret=self.RAZORPAY_KEY_SECRET,
            webhook_secret=self.RAZORPAY_WEBHOOK_SECRET,
            base_url=self.RAZORPAY_BASE_URL,
            default_currency=self.DEFAULT_CURRENCY,
            timeout=self.RAZORPAY_TIMEOUT_SECONDS,
        )


settings = Settings()

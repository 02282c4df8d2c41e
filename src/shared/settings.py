"""Runtime configuration loaded from environment variables and ``.env``."""

from functools import lru_cache

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when the environment cannot run the service safely."""


class Settings(BaseSettings):
    """Marketplace order service settings.

    Every field can be overridden by the upper-cased environment variable of
    the same name (``RAZORPAY_KEY_ID``, ``COURIER_API_TOKEN`` ...).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    protean_env: str = Field("development", description="development | test | staging | production")
    log_level: str | None = Field(None, description="Overrides the per-environment default level")
    log_dir: str | None = Field(None, description="Directory for rotating log files; console only when unset")
    cors_origins: list[str] = Field(default=["*"])

    # Payment gateway
    razorpay_key_id: str | None = Field(None, description="Publishable key id, shared with clients")
    razorpay_key_secret: str | None = Field(None, description="Server-only secret used for signatures")
    razorpay_base_url: str = Field("https://api.razorpay.com/v1")
    payment_currency: str = Field("INR", min_length=3, max_length=3)
    gateway_timeout: float = Field(10.0, gt=0)
    fake_gateway_secret: str = Field("fake-gateway-secret", description="Signing secret of the fake gateway")

    # Courier partner
    courier_adapter: str = Field("simulated")
    courier_name: str = Field("Imperial Express")
    courier_api_token: str | None = Field(None, description="Bearer token presented by the courier partner")

    # Client return URLs
    web_app_url: str = Field("http://localhost:3000")
    mobile_app_scheme: str = Field("marketplace://")

    @property
    def is_production(self) -> bool:
        return self.protean_env.lower() == "production"


def validate_environment(settings: Settings) -> None:
    """Fail fast on configurations that would break payments in production."""
    if not settings.is_production:
        return

    missing = [
        name for name in ("razorpay_key_id", "razorpay_key_secret") if not getattr(settings, name)
    ]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(name.upper() for name in missing)}")

    if settings.razorpay_key_id.startswith("rzp_test_"):
        logger.warning("test_payment_keys_in_production", key_id=settings.razorpay_key_id)

    if not settings.courier_api_token:
        logger.warning("courier_api_token_not_set")


@lru_cache
def get_settings() -> Settings:
    return Settings()

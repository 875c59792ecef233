"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_ENVIRONMENTS = ("test_mode", "live_mode")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe Configuration
    stripe_secret_key: str = Field(..., description="Stripe secret API key (sk_test_... / sk_live_...)")
    stripe_webhook_secret: str = Field(..., description="Stripe webhook signing secret")
    stripe_webhook_tolerance: int = Field(
        default=300, description="Max age of a signed webhook timestamp (seconds)"
    )

    # Checkout Configuration
    payment_return_url: str = Field(
        default="http://localhost:3000/", description="Where customers land after checkout"
    )
    payment_environment: str = Field(
        default="test_mode", description="Processor environment tag (test_mode/live_mode)"
    )

    # Persistence
    payments_file: str = Field(
        default="payments.json", description="JSON file holding the payment status cache"
    )

    # Application Configuration
    app_name: str = Field(default="payment-relay", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=3000, description="API port")
    allowed_origins: str = Field(
        default="*", description="CORS allowed origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stripe_secret_key")
    @classmethod
    def validate_stripe_key(cls, v: str) -> str:
        """Validate that the key looks like a Stripe secret or restricted key."""
        if not v.startswith(("sk_test_", "sk_live_", "rk_test_", "rk_live_")):
            raise ValueError(
                "Invalid Stripe secret key format. Must start with 'sk_test_', 'sk_live_', "
                "'rk_test_' or 'rk_live_'"
            )
        return v

    @field_validator("payment_environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Invalid payment environment. Must be one of: {list(VALID_ENVIRONMENTS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def validate_key_matches_environment(self) -> "Settings":
        """A test-mode key cannot drive a live-mode deployment and vice versa."""
        if self.is_test_mode != (self.payment_environment == "test_mode"):
            raise ValueError(
                f"Stripe key mode does not match PAYMENT_ENVIRONMENT={self.payment_environment}"
            )
        return self

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    @property
    def is_test_mode(self) -> bool:
        """Check if using Stripe test mode."""
        return self.stripe_secret_key.startswith(("sk_test_", "rk_test_"))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

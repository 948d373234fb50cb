"""Application settings loaded from environment variables (and `.env`).

Covers tenant resolution, the payment gateway selection and the BOG
credentials. Domain persistence is configured separately through protean
(`PROTEAN_ENV` and an optional `domain.toml`).
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Sandbox endpoints; production deployments override both.
BOG_SANDBOX_OAUTH_URL = "https://oauth2-sandbox.bog.ge/auth/realms/bog/protocol/openid-connect/token"
BOG_SANDBOX_API_URL = "https://api-sandbox.bog.ge/payments/v1"

# Public key published by BOG for verifying `Callback-Signature`.
BOG_PUBLIC_KEY = """-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAu4RUyAw3+CdkS3ZNILQh
zHI9Hemo+vKB9U2BSabppkKjzjjkf+0Sm76hSMiu/HFtYhqWOESryoCDJoqffY0Q
1VNt25aTxbj068QNUtnxQ7KQVLA+pG0smf+EBWlS1vBEAFbIas9d8c9b9sSEkTrr
TYQ90WIM8bGB6S/KLVoT1a7SnzabjoLc5Qf/SLDG5fu8dH8zckyeYKdRKSBJKvhx
tcBuHV4f7qsynQT+f2UYbESX/TLHwT5qFWZDHZ0YUOUIvb8n7JujVSGZO9/+ll/g
4ZIWhC1MlJgPObDwRkRd8NFOopgxMcMsDIZIoLbWKhHVq67hdbwpAq9K9WMmEhPn
PwIDAQAB
-----END PUBLIC KEY-----"""


class Settings(BaseSettings):
    """Runtime configuration for the shopu API."""

    ENVIRONMENT: str = "development"

    # === LOGGING ===
    LOG_LEVEL: str = "INFO"
    # Rotating log files are written here; empty disables file logging
    LOG_DIR: str = "logs"

    # === TENANT RESOLUTION ===
    # Comma separated list of platform hosts (not tenant custom domains)
    MAIN_DOMAINS: str = "shopu.ge,momigvare.ge,localhost,127.0.0.1"
    STOREFRONT_SCHEME: str = "https"

    # === PAYMENTS ===
    PAYMENT_GATEWAY: str = "fake"
    PUBLIC_API_URL: str = "http://localhost:8000"
    CURRENCY: str = "GEL"
    PAYMENT_TTL_MINUTES: int = 15

    BOG_CLIENT_ID: str | None = None
    BOG_CLIENT_SECRET: str | None = None
    BOG_OAUTH_URL: str = BOG_SANDBOX_OAUTH_URL
    BOG_API_URL: str = BOG_SANDBOX_API_URL
    BOG_CALLBACK_PUBLIC_KEY: str = BOG_PUBLIC_KEY
    BOG_REQUIRE_SIGNATURE: bool = True
    BOG_REQUEST_TIMEOUT: float = 30.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v

    @field_validator("PAYMENT_GATEWAY")
    @classmethod
    def validate_payment_gateway(cls, v):
        v = v.lower()
        if v not in ("fake", "bog"):
            raise ValueError("PAYMENT_GATEWAY must be 'fake' or 'bog'")
        return v

    @field_validator("PAYMENT_TTL_MINUTES")
    @classmethod
    def clamp_payment_ttl(cls, v):
        # BOG accepts 2..1440 minutes
        return max(2, min(v, 1440))

    @property
    def main_domains(self) -> list[str]:
        return [host.strip().lower() for host in self.MAIN_DOMAINS.split(",") if host.strip()]

    @property
    def bog_callback_url(self) -> str:
        return f"{self.PUBLIC_API_URL.rstrip('/')}/payments/bog/callback"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def json_logs(self) -> bool:
        """Deployed environments log JSON lines; everything else logs for a terminal."""
        return self.is_production or self.ENVIRONMENT.lower() == "staging"


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and load them again (used by tests)."""
    get_settings.cache_clear()
    return get_settings()

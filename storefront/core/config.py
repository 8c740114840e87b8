from pathlib import Path
from urllib.parse import urlparse

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    db_name: str = "storefront"
    db_user: str = "storefront"
    db_password: str = "CHANGE_ME"
    db_host: str = "db"
    db_port: int = 5432
    db_ssl: bool = False

    # Cache
    redis_url: str = "redis://redis:6379/0"
    cart_cache_ttl_seconds: int = 7 * 24 * 60 * 60
    user_cache_ttl_seconds: int = 24 * 60 * 60
    listing_cache_ttl_seconds: int = 10 * 60

    # CORS
    cors_allowed_origins: str = "http://localhost:3000"

    # JWT (tokens are issued by the identity provider, we only verify)
    jwt_secret_key: str = "CHANGE_ME"
    jwt_issuer: str = "storefront"
    jwt_audience: str = "storefront"

    # Delhivery carrier
    delhivery_base_url: str = "https://track.delhivery.com"
    delhivery_token: str = ""
    carrier_poll_interval_minutes: int = 60

    # Razorpay payment gateway
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_webhook_secret: str = ""
    payment_timeout_minutes: int = 15

    # Checkout pricing, in paise
    free_delivery_threshold: int = 99900
    delivery_fee: int = 9900

    # Cron endpoints
    cron_secret: str = "CHANGE_ME"

    # SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_from_address: str = ""
    company_name: str = "Storefront"

    # Media library
    max_media_size_mb: int = 5

    # App
    debug: bool = False
    backend_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:3000"

    @property
    def database_url(self) -> str:
        base = (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )
        return f"{base}?ssl=require" if self.db_ssl else base

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "extra": "ignore"}

    def validate_secrets(self) -> None:
        """Raise if production-critical secrets are still defaults."""
        defaults = {"CHANGE_ME"}
        if self.jwt_secret_key in defaults:
            raise ValueError("jwt_secret_key must be changed from default")
        if len(self.jwt_secret_key) < 32:
            raise ValueError(
                "jwt_secret_key must be at least 32 characters (256 bits) per RFC 7518 Section 3.2"
            )
        if self.cron_secret in defaults:
            raise ValueError("cron_secret must be changed from default")
        for url_name in ("backend_url", "frontend_url"):
            url_val = getattr(self, url_name)
            parsed = urlparse(url_val)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"{url_name} must be a valid http(s) URL")
        if self.db_password in defaults:
            raise ValueError("db_password must be changed from default")

    @property
    def upload_dir(self) -> Path:
        docker_path = Path("/app/uploads")
        if docker_path.exists():
            return docker_path
        local_path = Path("uploads")
        local_path.mkdir(exist_ok=True)
        return local_path


settings = Settings()

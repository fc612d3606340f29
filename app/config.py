"""Application configuration using Pydantic Settings"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App
    app_name: str = "Delivery Storefront API"
    debug: bool = False
    frontend_url: str = "http://localhost:3000"
    store_timezone: str = "America/Sao_Paulo"
    store_whatsapp_number: Optional[str] = None

    # Database
    mongodb_url: str
    mongodb_db_name: str = "storefront"

    # Security
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days
    magic_link_expire_minutes: int = 15

    # Email
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from: str = "no-reply@localhost"

    # Geo providers
    mapbox_access_token: Optional[str] = None
    mapbox_base_url: str = "https://api.mapbox.com"
    viacep_base_url: str = "https://viacep.com.br"
    http_timeout_seconds: float = 10.0

    # Webhooks
    order_webhook_url: Optional[str] = None
    webhook_secret_token: Optional[str] = None

    # Business configuration cache (schedule / delivery documents)
    config_cache_ttl_seconds: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

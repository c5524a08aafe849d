"""All settings, loaded from the .env file."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    app_name: str = "Resource WebSite API"
    app_version: str = "0.1.1"
    api_prefix: str = "/custom/api"
    database_url: str = "sqlite:///./resource_site.db"
    cors_origins: list[str] = ["*"]

    # JWT
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24
    admin_role: int = 1

    # Uploads
    description_dir: str = "../assets/uploads/description/"
    avatar_dir: str = "../assets/uploads/avatar/"
    max_upload_size_mb: int = 10

    # Pagination
    default_page_size: int = 49
    max_page_size: int = 200

    # Captcha
    captcha_enabled: bool = True
    captcha_ttl_seconds: int = 300
    captcha_length: int = 5

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"
    rate_limit_login: str = "10/minute"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Website profile
    site_title: str = "Resource WebSite"
    site_description: str = "Source code packages, ready to download"
    site_keywords: str = "source code,php,python,java"
    login_background: str = "/assets/images/login_bg.jpg"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

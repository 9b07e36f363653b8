from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gnews_api_key: str | None = None
    gnews_base_url: str = "https://gnews.io/api/v4"
    newsapi_key: str | None = None
    newsapi_base_url: str = "https://newsapi.org/v2"

    provider_timeout_seconds: float = 10.0
    max_articles: int = 10
    cache_ttl_seconds: float = 300.0

    jwt_secret: str = "fallback_secret_key"
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 24
    bcrypt_rounds: int = 10

    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()

"""
Configuration settings for the Market Digest pipeline.
"""

from pathlib import Path
from functools import lru_cache
from typing import Optional, Literal
from pydantic import Field
from pydantic_settings import BaseSettings


LLMProviderName = Literal["gemini", "openai"]


class ConfigurationError(Exception):
    """A required credential or setting is missing. Fatal for a digest run."""
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    finnhub_api_key: Optional[str] = Field(None, env="FINNHUB_API_KEY")
    gemini_api_key: Optional[str] = Field(None, env="GEMINI_API_KEY")
    openai_api_key: Optional[str] = Field(None, env="OPENAI_API_KEY")

    # Market data provider
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    finnhub_max_concurrency: int = Field(4, env="FINNHUB_MAX_CONCURRENCY")
    news_lookback_days: int = Field(5, env="NEWS_LOOKBACK_DAYS")

    # Provider-level cache TTLs (seconds)
    symbol_news_cache_seconds: int = Field(3600, env="SYMBOL_NEWS_CACHE_SECONDS")
    general_news_cache_seconds: int = Field(3600, env="GENERAL_NEWS_CACHE_SECONDS")
    search_cache_seconds: int = Field(1800, env="SEARCH_CACHE_SECONDS")
    profile_cache_seconds: int = Field(3600, env="PROFILE_CACHE_SECONDS")

    # LLM Provider Selection
    llm_provider: LLMProviderName = Field("gemini", env="LLM_PROVIDER")
    gemini_model: str = Field("gemini-2.5-flash-lite", env="GEMINI_MODEL")
    openai_model: str = Field("gpt-4o-mini", env="OPENAI_MODEL")
    summary_max_tokens: int = Field(2048, env="SUMMARY_MAX_TOKENS")
    summary_temperature: float = Field(0.3, env="SUMMARY_TEMPERATURE")

    # Mail transport
    smtp_host: str = Field("smtp.gmail.com", env="SMTP_HOST")
    smtp_port: int = Field(465, env="SMTP_PORT")
    smtp_user: Optional[str] = Field(None, env="SMTP_USER")
    smtp_password: Optional[str] = Field(None, env="SMTP_PASSWORD")
    mail_from_name: str = Field("Market Digest News", env="MAIL_FROM_NAME")
    smtp_sends_per_minute: int = Field(60, env="SMTP_SENDS_PER_MINUTE")

    # Digest workflow
    digest_concurrency: int = Field(5, env="DIGEST_CONCURRENCY")
    digest_cron_hour: int = Field(12, env="DIGEST_CRON_HOUR")
    digest_cron_minute: int = Field(0, env="DIGEST_CRON_MINUTE")
    digest_timezone: str = Field("UTC", env="DIGEST_TIMEZONE")

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    cache_dir: Optional[Path] = Field(default=None, env="CACHE_DIR")
    checkpoint_dir: Optional[Path] = Field(default=None, env="CHECKPOINT_DIR")
    store_path: Optional[Path] = Field(default=None, env="STORE_PATH")

    # Logging
    log_level: str = Field("INFO", env="LOG_LEVEL")
    log_file: Optional[str] = Field(None, env="LOG_FILE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Set default paths relative to base_dir
        if self.cache_dir is None:
            self.cache_dir = self.base_dir / "data" / "cache"
        if self.checkpoint_dir is None:
            self.checkpoint_dir = self.base_dir / "data" / "checkpoints"
        if self.store_path is None:
            self.store_path = self.base_dir / "data" / "users.json"

    def require_finnhub_key(self) -> str:
        """Return the market data API key or fail the run."""
        if not self.finnhub_api_key:
            raise ConfigurationError("FINNHUB_API_KEY is not set")
        return self.finnhub_api_key


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Quote Gateway"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    request_timeout_seconds: int = 8
    retry_attempts: int = 3
    retry_backoff_base_seconds: float = 0.3
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

    schema_version: str = "1.0"

    primary_base_url: str = "https://query1.finance.yahoo.com"
    fallback_base_url: str = "https://api.nasdaq.com/api"
    chart_interval: str = "1d"
    chart_range: str = "3mo"
    history_window: int = 30

    rate_limit_requests_per_minute: int = 120

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()

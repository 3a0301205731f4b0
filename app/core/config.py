"""Application configuration for Token Insights.

Configuration is loaded from environment variables, making the service suitable
for container-based or serverless deployments.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "token_insights"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"

    database_url: str | None = None

    cors_origins: list[str] = [
        "http://localhost:3000",
    ]

    log_level: str = "INFO"

    # Per-instance result cache TTLs (seconds).
    trending_cache_ttl_seconds: int = 300
    stats_cache_ttl_seconds: int = 300
    learned_tokens_cache_ttl_seconds: int = 300
    cache_max_entries: int = 256

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url

        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()

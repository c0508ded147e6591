from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file (for secrets like API keys)
    - System environment

    Variable names match docker-compose conventions:
    - POSTGRES_HOST, POSTGRES_PORT, etc. (for database)
    - MOLTBOOK_BASE_URL, MOLTBOOK_RATE_LIMIT_DELAY_MS (for the upstream API)
    - OPENAI_API_KEY, EMBEDDING_BASE_URL (for embeddings)
    """

    # Moltbook upstream API
    moltbook_base_url: str = "https://www.moltbook.com"
    moltbook_rate_limit_delay_ms: int = 1000
    moltbook_timeout_seconds: float = 30.0

    # PostgreSQL (from docker-compose)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "moltspace_user"
    postgres_password: str = "moltspace_pass"
    postgres_db: str = "moltspace"
    database_url: Optional[str] = Field(default=None, validate_default=True)

    # Embeddings (from .env). Any OpenAI-compatible endpoint works.
    openai_api_key: str = ""
    embedding_base_url: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"

    # Ingestion job tuning
    ingest_page_delay_ms: int = 1000
    ingest_comment_page_delay_ms: int = 500
    ingest_embedding_post_limit: int = 50
    ingest_comment_post_limit: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('moltbook_base_url', mode='before')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Endpoint paths are joined with a leading slash"""
        return v.rstrip('/') if isinstance(v, str) else v

    @field_validator('database_url', mode='before')
    @classmethod
    def construct_database_url(cls, v, info):
        """Construct database URL from components if not explicitly set"""
        if v:
            return v

        data = info.data
        host = data.get('postgres_host', 'localhost')
        port = data.get('postgres_port', 5432)
        user = data.get('postgres_user', 'moltspace_user')
        password = data.get('postgres_password', 'moltspace_pass')
        db = data.get('postgres_db', 'moltspace')

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"

    @property
    def embeddings_enabled(self) -> bool:
        return bool(self.openai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

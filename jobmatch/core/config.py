from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    APP_NAME: str = "JobMatch"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: str = ""   # comma-separated; empty = allow all

    # SQLite by default; any SQLAlchemy URL works (postgresql+psycopg://...)
    DATABASE_URL: str = "sqlite:///./jobmatch.db"

    # Embedding / LLM provider
    EMBEDDING_PROVIDER: str = "openai"   # 'openai' | 'local'
    OPENAI_API_KEY: str = ""
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIM: int = 1536
    LOCAL_EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
    CHAT_MODEL: str = "gpt-4o-mini"
    CHAT_TEMPERATURE: float = 0.3
    CHAT_MAX_TOKENS: int = 200
    PROVIDER_TIMEOUT: float = 30.0
    PROVIDER_MAX_RETRIES: int = 2

    # Sync
    SYNC_BATCH_SIZE: int = 500
    SYNC_BATCH_DELAY: float = 0.0

    # Matching
    MATCH_LIMIT: int = 10
    MATCH_THRESHOLD: float = 0.5
    SKILL_ENRICHMENT: bool = True
    SIMILARITY_WEIGHT: float = 0.7
    SKILL_WEIGHT: float = 0.3

settings = Settings()

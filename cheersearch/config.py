from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Redis (history / trending / context persistence)
    redis_url: str = "redis://localhost:6379/0"
    storage_key_prefix: str = "cheersearch"

    # Embedding provider
    embedding_api_url: str = "https://openrouter.ai/api/v1/embeddings"
    embedding_api_key: str = ""
    embedding_model: str = "openai/text-embedding-3-small"
    embedding_dimension: int | None = None  # None skips the dimension check
    embedding_max_chars: int = 8000

    # Vector store (Pinecone index host, no trailing slash)
    pinecone_api_url: str = ""
    pinecone_api_key: str = ""
    pinecone_api_version: str = "2025-10"

    # Outbound call resilience
    http_timeout_ms: int = 15_000
    http_retries: int = 2
    http_backoff_ms: int = 500

    # Hybrid ranking
    default_namespace: str = "knowledge"
    min_vector_score: float = 0.7
    vector_weight: float = 0.7
    keyword_weight: float = 0.3
    excerpt_length: int = 150
    max_search_results: int = 50

    # History / trending / suggestions
    max_history: int = 100
    max_trending: int = 50
    max_context_history: int = 5
    max_suggestions: int = 10

    # App
    app_name: str = "CheerSearch API"
    app_version: str = "1.0.0"
    debug: bool = False
    slow_request_ms: int = 1000


settings = Settings()

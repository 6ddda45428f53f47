"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. **Environment variables** -- e.g. ``OPENAI_API_KEY=sk-abc123``
  2. **.env file** -- key=value lines in the project root ``.env``

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``; defaults apply
when neither source sets a value.  Provider selection is explicit
(``LLM_PROVIDER``, ``EMBEDDING_PROVIDER``, ``VECTOR_STORE_PROVIDER``) --
``main.py`` never guesses a provider from which keys happen to be present.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Rechtspraak application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Provider Selection ===
    llm_provider: str = "openai"
    embedding_provider: str = "openai"
    vector_store_provider: str = "chromadb"  # "chromadb" or "memory"

    # === OpenAI ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_text_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_timeout_seconds: float = 30.0

    # === Vector Store ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "rechtspraak_documents"

    # === Google Drive ===
    google_drive_api_key: str = ""
    google_drive_base_url: str = "https://www.googleapis.com/drive/v3"
    max_file_size_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    temp_dir: str = "./data/tmp"

    # === Ingestion ===
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=100, ge=0)
    embedding_batch_size: int = Field(default=100, gt=0)
    upsert_batch_size: int = Field(default=100, gt=0)
    inter_batch_delay_seconds: float = Field(default=0.1, ge=0.0)
    rate_limit_max_retries: int = Field(default=3, ge=0)
    rate_limit_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # === Chat ===
    max_search_results: int = Field(default=5, gt=0)
    min_relevance_score: float = Field(default=0.3, ge=0.0, le=1.0)
    max_context_length: int = Field(default=8000, gt=0)
    conversation_history_limit: int = Field(default=10, gt=0)
    active_session_window_minutes: int = Field(default=60, gt=0)
    answer_temperature: float = 0.3
    answer_max_tokens: int = 1000

    # === Temp Artifact Sweeper ===
    temp_sweep_interval_seconds: float = Field(default=1800.0, gt=0.0)
    temp_max_age_seconds: float = Field(default=3600.0, gt=0.0)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    def get_configured_providers(self) -> dict[str, str]:
        """Return the explicitly selected provider name per capability."""
        return {
            "llm": self.llm_provider,
            "embedding": self.embedding_provider,
            "vector_store": self.vector_store_provider,
        }

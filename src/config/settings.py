"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables** -- e.g. VECTOR_UPSTASH_TOKEN=...
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``embedding_base_url`` maps to env var ``EMBEDDING_BASE_URL``.
# Defaults apply when neither source defines a field.
#
# Static tuning knobs that rarely differ per deployment (chunk sizes,
# strategy) live in config/config.yaml instead; see loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

VectorStoreBackend = Literal["auto", "chromadb", "pgvector", "upstash"]


class Settings(BaseSettings):
    """Job openings service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Vector store ===
    # "auto" picks a backend from APP_ENV and whichever credentials are set;
    # see _select_vector_backend() in main.py.
    vector_store_backend: VectorStoreBackend = "auto"
    vector_index_name: str = "job-openings"
    vector_upstash_url: str = ""
    vector_upstash_token: str = ""
    postgres_vector_connection_string: str = ""
    postgres_vector_schema: str = "public"
    chromadb_persist_dir: str = "./data/chromadb"

    # === Embeddings (Ollama-compatible /api/embed endpoint) ===
    embedding_base_url: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    embedding_dimension: int = 768

    # === Agent (OpenAI-compatible chat endpoint, Groq by default) ===
    # Empty key = agent not configured → the /ask endpoint answers 503.
    agent_api_key: str = ""
    agent_base_url: str = "https://api.groq.com/openai/v1"
    agent_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    # === Documents ===
    # Empty string = vector-only deployment (no JSON files written).
    job_openings_dir: str = "./data/job-openings"
    query_top_k: int = 3

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    config_path: str = "config/config.yaml"

    def has_upstash_credentials(self) -> bool:
        return bool(self.vector_upstash_url and self.vector_upstash_token)

    def has_postgres_credentials(self) -> bool:
        return bool(self.postgres_vector_connection_string)

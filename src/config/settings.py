"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, environment variables first and then
the project-root ``.env`` file.  Field ``openai_api_key`` maps to the
``OPENAI_API_KEY`` variable, ``chat_similarity_floor`` to
``CHAT_SIMILARITY_FLOOR`` and so on.  Defaults apply when neither source
sets a value.

The ``.env`` file is git-ignored; ``.env.example`` lists what is available.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """linkvault application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Text generation providers ===
    # Empty string = "not configured"; main.py falls through to the next
    # provider (Anthropic -> OpenAI -> Ollama).
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""  # default gpt-4o-mini
    openai_embedding_model: str = ""  # default text-embedding-3-small
    anthropic_api_key: str = ""
    anthropic_model: str = ""  # default claude-sonnet-4-20250514
    ollama_base_url: str = "http://localhost:11434"
    ollama_text_model: str = "llama3.1"
    generation_timeout_seconds: float = 25.0

    # === Embeddings ===
    # Every stored vector must have exactly this many components.  Must
    # match the selected embedding model (1536 for OpenAI, 768 for Nomic).
    embedding_dimension: int = 1536

    # === Record store ===
    database_path: str = "data/linkvault.db"

    # === Page fetching / extraction ===
    fetch_timeout_seconds: float = 8.0
    fetch_max_bytes: int = 10 * 1024 * 1024
    content_max_chars: int = 8000

    # === Generation retries ===
    generation_max_attempts: int = 3
    generation_retry_backoff: float = 0.5
    tag_link_max_attempts: int = 3

    # === Chat retrieval ===
    chat_top_k: int = 5
    chat_similarity_floor: float = 0.0
    chat_query_prefix: str = "This is about: "

    # === Auth ===
    # Empty = development mode: the raw bearer token is used as the owner id.
    auth_secret: str = ""

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names in the priority order main.py tries them."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

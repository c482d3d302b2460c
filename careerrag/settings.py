# careerrag/settings.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # providers
    OPENAI_API_KEY: str | None = None
    OLLAMA_HOST: str = Field(default="http://localhost:11434")
    EMBED_PROVIDER: str = Field(default="hashing")  # hashing | ollama | openai | local
    EMBED_MODEL: str = Field(default="bge-m3:latest")
    EMBED_DIM: int = Field(default=384)
    GEN_PROVIDER: str = Field(default="echo")  # echo | ollama | openai
    GEN_MODEL: str = Field(default="mistral:7b-instruct")

    # hybrid search
    VECTOR_WEIGHT: float = Field(default=0.7)
    KEYWORD_WEIGHT: float = Field(default=0.3)
    SEARCH_LIMIT: int = Field(default=25)
    PARALLEL_SEARCH: bool = Field(default=True)

    # rerank / dedup / context
    RERANK_RETRIEVAL_WEIGHT: float = Field(default=0.6)
    RERANK_PROFILE_WEIGHT: float = Field(default=0.4)
    DEDUP_THRESHOLD: float = Field(default=0.9)
    MAX_CONTEXT_TOKENS: int = Field(default=3000)

    # bias
    TEACHING_BIAS_THRESHOLD: float = Field(default=0.6)
    CATEGORY_DOMINANCE_THRESHOLD: float = Field(default=0.6)
    MIN_ITEMS_FOR_ANALYSIS: int = Field(default=3)

    # generation
    GEN_MAX_RETRIES: int = Field(default=2)
    GEN_TIMEOUT_MS: int = Field(default=10_000)
    BACKOFF_BASE_SECONDS: float = Field(default=1.0)
    BACKOFF_FACTOR: float = Field(default=2.0)
    BACKOFF_MAX_SECONDS: float = Field(default=30.0)
    DISCLAIMER_MARKER: str = Field(default="⚠️")
    SAFETY_FILTER: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )


settings = Settings()

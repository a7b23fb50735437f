"""Application configuration."""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # OpenAI Settings (generation + hosted embeddings)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="Model for summaries, teasers and RAG answers")
    openai_title_model: str = Field(default="gpt-4o-mini", description="Lightweight model for idea titles")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible API base URL")
    request_timeout: float = Field(default=30.0, description="Timeout in seconds for hosted model requests")

    # Embedding Model
    embedding_provider: str = Field(
        default="openai",
        description="Embedding backend: 'openai' (hosted endpoint) or 'local' (Sentence Transformers)"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Hosted embedding model name"
    )
    local_embedding_model: str = Field(
        default="sentence-transformers/paraphrase-multilingual-mpnet-base-v2",
        description="Sentence Transformers model name used when embedding_provider is 'local'"
    )
    embedding_dimension: int = Field(
        default=1536,
        description="Embedding vector dimension (depends on model, must stay constant for stored vectors)"
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./orange_portal.db",
        description="Database connection URL"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Login
    access_ids: str = Field(
        default="admin,orange-admin,o-range",
        description="Comma-separated list of accepted login IDs (case-insensitive)"
    )
    session_expiration_hours: int = Field(default=12, description="Login session lifetime in hours")

    @property
    def access_ids_list(self) -> list[str]:
        """Parse access IDs from comma-separated string."""
        return [access_id.strip().lower() for access_id in self.access_ids.split(",") if access_id.strip()]

    # RAG / enrichment
    rag_top_k: int = Field(default=5, description="Number of archived snippets passed to the answer prompt")
    teaser_max_length: int = Field(default=20, description="Maximum teaser length before the trailing ellipsis")
    idea_title_max_length: int = Field(default=30, description="Maximum generated idea title length")
    fallback_text_length: int = Field(
        default=30,
        description="Number of source characters used for fallback teasers and titles"
    )

    # Image storage
    media_root: str = Field(default="./media", description="Directory for uploaded images")
    media_url_prefix: str = Field(default="/media", description="Public URL prefix for uploaded images")
    max_image_size_bytes: int = Field(default=5 * 1024 * 1024, description="Maximum upload size (5MB)")
    allowed_image_types: str = Field(
        default="image/jpeg,image/jpg,image/png,image/webp",
        description="Comma-separated list of accepted image content types"
    )

    @property
    def allowed_image_types_list(self) -> list[str]:
        """Parse allowed image content types from comma-separated string."""
        return [t.strip().lower() for t in self.allowed_image_types.split(",") if t.strip()]

    # Development Settings
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("embedding_dimension")
    @classmethod
    def validate_embedding_dimension(cls, v: int) -> int:
        """Validate embedding dimension is positive."""
        if v <= 0:
            raise ValueError("embedding_dimension must be positive")
        return v

    @field_validator(
        "rag_top_k",
        "teaser_max_length",
        "idea_title_max_length",
        "fallback_text_length",
        "session_expiration_hours",
        "max_image_size_bytes",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate request timeout is positive."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @model_validator(mode="after")
    def validate_embedding_provider(self) -> "Settings":
        """Validate the embedding provider name."""
        self.embedding_provider = self.embedding_provider.lower()
        if self.embedding_provider not in ("openai", "local"):
            raise ValueError("embedding_provider must be 'openai' or 'local'")
        return self


# Global settings instance
settings = Settings()

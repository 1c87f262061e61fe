"""Configuration models for validation using Pydantic."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CredentialsConfig(BaseModel):
    """API credentials loaded from environment variables."""

    # GitHub token is optional - unauthenticated requests get lower rate limits
    github_token: Optional[str] = Field(None, description="GitHub personal access token (raises rate limits)")

    # Supabase (required)
    supabase_url: str = Field(..., min_length=1, description="Supabase project URL")
    supabase_key: str = Field(..., min_length=1, description="Supabase API key")
    database_url: Optional[str] = Field(None, description="PostgreSQL database URL (optional, for schema setup)")

    # External developer scoring service
    scoring_service_url: Optional[str] = Field(None, description="Base URL of the developer scoring service")
    scoring_service_key: Optional[str] = Field(None, description="API key for the developer scoring service")

    # LLM configuration (keyword extraction)
    anthropic_api_key: Optional[str] = Field(None, description="Anthropic API key for Claude")
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    llm_provider: str = Field(default="anthropic", description="LLM provider: 'anthropic' or 'openai'")
    llm_model: str = Field(default="claude-3-5-haiku-20241022", description="LLM model name")

    @field_validator("github_token", "scoring_service_key", "anthropic_api_key", "openai_api_key")
    @classmethod
    def empty_string_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings from .env as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: Optional[str]) -> Optional[str]:
        """Reject the placeholder token from .env.example."""
        if v == "ghp_your_token_here":
            raise ValueError("GitHub token must be set in .env file (or left empty)")
        return v

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v or v == "https://your-project.supabase.co":
            raise ValueError("Supabase URL must be set in .env file")
        if not v.startswith("https://"):
            raise ValueError("Supabase URL must start with https://")
        return v

    @field_validator("supabase_key")
    @classmethod
    def validate_supabase_key(cls, v: str) -> str:
        """Validate Supabase key is set."""
        if not v or v == "your_supabase_anon_key_here":
            raise ValueError("Supabase key must be set in .env file")
        return v

    @field_validator("scoring_service_url")
    @classmethod
    def validate_scoring_service_url(cls, v: Optional[str]) -> Optional[str]:
        """Normalize the scoring service URL (empty means not configured)."""
        if v is None or not v.strip():
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Scoring service URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ("anthropic", "openai"):
            raise ValueError("LLM provider must be 'anthropic' or 'openai'")
        return v_lower

    @property
    def llm_api_key(self) -> Optional[str]:
        """API key for the selected LLM provider, if any."""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


class Config(BaseModel):
    """Application configuration."""

    credentials: CredentialsConfig
    log_level: str = Field(default="INFO", description="Logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API (the web frontend)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        origins = [origin.strip().rstrip("/") for origin in v if origin.strip()]
        if not origins:
            raise ValueError("At least one CORS origin must be configured")
        return origins

"""
Core configuration management using Pydantic Settings.
Handles environment variables, validation, and application settings.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")
SUPPORTED_RATE_LIMIT_BACKENDS = ("memory", "redis")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    All settings are validated at startup.

    Provider API keys are optional here; a missing key surfaces as a
    configuration error on the first refinement request.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ============================================================================
    # APPLICATION SETTINGS
    # ============================================================================
    APP_NAME: str = Field(default="Web Novel Refiner API")
    APP_VERSION: str = Field(default="1.0.0")
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    API_PREFIX: str = Field(default="/api")

    # ============================================================================
    # SERVER SETTINGS
    # ============================================================================
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    RELOAD: bool = Field(default=True)

    # ============================================================================
    # CORS CONFIGURATION
    # ============================================================================
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173"
    )
    ALLOWED_METHODS: str = Field(default="GET,POST,OPTIONS")
    ALLOWED_HEADERS: str = Field(default="*")
    ALLOW_CREDENTIALS: bool = Field(default=False)

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def parse_allowed_origins(cls, v: str) -> List[str]:
        """Convert comma-separated origins to list."""
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    @field_validator("ALLOWED_METHODS")
    @classmethod
    def parse_allowed_methods(cls, v: str) -> List[str]:
        """Convert comma-separated methods to list."""
        return [method.strip() for method in v.split(",") if method.strip()]

    @field_validator("ALLOWED_HEADERS")
    @classmethod
    def parse_allowed_headers(cls, v: str) -> List[str]:
        """Convert comma-separated headers to list."""
        return [header.strip() for header in v.split(",") if header.strip()]

    # ============================================================================
    # TEXT GENERATION PROVIDER
    # ============================================================================
    LLM_PROVIDER: str = Field(default="gemini")

    @field_validator("LLM_PROVIDER")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Lower-case the provider name; unknown names fail at request time."""
        return v.strip().lower()

    # ============================================================================
    # GOOGLE GEMINI AI
    # ============================================================================
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash")

    # ============================================================================
    # OPENAI GPT
    # ============================================================================
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")

    # ============================================================================
    # ANTHROPIC CLAUDE
    # ============================================================================
    ANTHROPIC_API_KEY: Optional[str] = Field(default=None, description="Anthropic Claude API key")
    ANTHROPIC_MODEL: str = Field(default="claude-3-5-sonnet-20241022")

    # ============================================================================
    # GENERATION PARAMETERS
    # ============================================================================
    GENERATION_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    GENERATION_TOP_P: float = Field(default=0.8, gt=0.0, le=1.0)
    GENERATION_TOP_K: int = Field(default=40, ge=1)
    GENERATION_MAX_OUTPUT_TOKENS: int = Field(default=8192, ge=1)

    # ============================================================================
    # REFINEMENT
    # ============================================================================
    CHUNK_SIZE: int = Field(default=4000, gt=0, description="Max characters per chunk")
    MAX_TOTAL_LENGTH: int = Field(default=50000, gt=0, description="Max characters per request")
    EXPOSE_UPSTREAM_ERRORS: bool = Field(default=False)

    # ============================================================================
    # RATE LIMITING
    # ============================================================================
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_BACKEND: str = Field(default="memory")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=60, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=3600, ge=1)
    RATE_LIMIT_KEY: str = Field(default="rate_limit:refine")

    @field_validator("RATE_LIMIT_BACKEND")
    @classmethod
    def validate_rate_limit_backend(cls, v: str) -> str:
        """Ensure the rate limit backend is supported."""
        v_lower = v.strip().lower()
        if v_lower not in SUPPORTED_RATE_LIMIT_BACKENDS:
            raise ValueError(f"RATE_LIMIT_BACKEND must be one of {list(SUPPORTED_RATE_LIMIT_BACKENDS)}")
        return v_lower

    # ============================================================================
    # REDIS CONFIGURATION
    # ============================================================================
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_PASSWORD: Optional[str] = Field(default=None)
    REDIS_MAX_CONNECTIONS: int = Field(default=50)
    REDIS_SOCKET_TIMEOUT: int = Field(default=5)
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5)
    REDIS_RETRY_BACKOFF_SECONDS: float = Field(default=30.0, ge=0.0)

    # ============================================================================
    # LOGGING
    # ============================================================================
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")
    LOG_FILE: Optional[str] = Field(default="logs/app.log")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    # ============================================================================
    # SENTRY ERROR TRACKING
    # ============================================================================
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_ENVIRONMENT: str = Field(default="development")
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=1.0)
    SENTRY_ENABLED: bool = Field(default=False)

    # ============================================================================
    # COMPUTED PROPERTIES
    # ============================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def provider_api_key(self) -> Optional[str]:
        """API key of the selected generation provider, if any."""
        keys = {
            "gemini": self.GEMINI_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
        }
        return keys.get(self.LLM_PROVIDER)


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================
settings = Settings()


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================
def get_settings() -> Settings:
    """
    Dependency function to get settings instance.
    Used in FastAPI dependency injection.
    """
    return settings


def print_settings_summary() -> None:
    """Print a summary of loaded settings (safe for logs)."""
    print("\n" + "=" * 80)
    print(f"📦 {settings.APP_NAME} v{settings.APP_VERSION}")
    print("=" * 80)
    print(f"🌍 Environment: {settings.ENVIRONMENT}")
    print(f"🐛 Debug Mode: {settings.DEBUG}")
    print(f"🚀 Server: {settings.HOST}:{settings.PORT}")
    print(f"🤖 Provider: {settings.LLM_PROVIDER} ({'key set' if settings.provider_api_key else 'NO API KEY'})")
    print(f"✂️  Chunk Size: {settings.CHUNK_SIZE} / Max Length: {settings.MAX_TOTAL_LENGTH}")
    if settings.RATE_LIMIT_ENABLED:
        print(
            f"🔒 Rate Limiting: {settings.RATE_LIMIT_MAX_REQUESTS} per "
            f"{settings.RATE_LIMIT_WINDOW_SECONDS}s ({settings.RATE_LIMIT_BACKEND})"
        )
    else:
        print("🔒 Rate Limiting: Disabled")
    print(f"📝 Log Level: {settings.LOG_LEVEL}")
    print("=" * 80 + "\n")

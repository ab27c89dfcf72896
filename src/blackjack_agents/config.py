"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Model channel configuration
    CHANNEL: str = "gemini"  # Options: gemini, openai, anthropic
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemma-3-27b-it"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_PROXY_URL: str | None = None  # e.g. http://localhost:8000/api/gemini
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"

    # Agent loop configuration
    MAX_AGENT_TURNS: int = 5
    REQUEST_TIMEOUT: float = 12.0  # seconds
    PROBE_TIMEOUT: float = 8.0  # seconds
    TEMPERATURE: float = 0.7
    MAX_OUTPUT_TOKENS: int = 256
    THINKING_LANG: str = "en"  # Options: en, kr, ja, es

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

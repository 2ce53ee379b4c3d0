"""Configuration management for Chef Assistant.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Anthropic credential used by the forwarder. Empty when unset;
        # a missing key is reported per request, not by validate()
        self.ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
        self.ANTHROPIC_API_URL: str = os.getenv("ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages")
        # Protocol version marker sent upstream as the anthropic-version header
        self.ANTHROPIC_VERSION: str = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
        self.ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
        # Max Output Tokens requested from the Messages API
        self.MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "1000"))

        # Forwarder server
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "3000"))
        self.FORWARDER_PATH: str = os.getenv("FORWARDER_PATH", "/api/claude")
        # CORS: permissive headers on every forwarder response when enabled
        self.CORS_ENABLED: bool = _env_bool("CORS_ENABLED", "true")
        self.CORS_ALLOW_ORIGIN: str = os.getenv("CORS_ALLOW_ORIGIN", "*")

        # Suggestion client
        # Completion Backend: "forwarder" or "gemini"
        # "forwarder": prompts go through the credential-guarded forwarder (production path)
        # "gemini": prompts go straight to Gemini with GEMINI_API_KEY (local experiments)
        self.COMPLETION_BACKEND: str = os.getenv("COMPLETION_BACKEND", "forwarder")
        self.FORWARDER_URL: str = os.getenv("FORWARDER_URL", "http://localhost:3000/api/claude")
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
        # Number of recipes requested per search. Default: 3
        self.SUGGESTION_COUNT: int = int(os.getenv("SUGGESTION_COUNT", "3"))
        # Prompt language: "en" or "fr"
        self.PROMPT_LANGUAGE: str = os.getenv("PROMPT_LANGUAGE", "en")

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If invalid values provided.
        """
        if not (0 < self.PORT < 65536):
            raise ValueError(f"PORT must be between 1 and 65535, got: {self.PORT}")
        if not self.FORWARDER_PATH.startswith("/"):
            raise ValueError(f"FORWARDER_PATH must start with '/', got: {self.FORWARDER_PATH}")
        if self.COMPLETION_BACKEND not in ("forwarder", "gemini"):
            raise ValueError(
                f"COMPLETION_BACKEND must be 'forwarder' or 'gemini', got: {self.COMPLETION_BACKEND}"
            )
        if self.PROMPT_LANGUAGE not in ("en", "fr"):
            raise ValueError(f"PROMPT_LANGUAGE must be 'en' or 'fr', got: {self.PROMPT_LANGUAGE}")
        if not (1 <= self.SUGGESTION_COUNT <= 10):
            raise ValueError(f"SUGGESTION_COUNT must be between 1 and 10, got: {self.SUGGESTION_COUNT}")
        if self.MAX_TOKENS < 256:
            raise ValueError(f"MAX_TOKENS must be at least 256, got: {self.MAX_TOKENS}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()

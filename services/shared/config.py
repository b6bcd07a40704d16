"""Shared configuration management for the invoice assistant.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from datetime import date
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="invoice-assistant",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Date and currency normalization
    reference_date: date = Field(
        default=date(2025, 9, 10),
        description="Fixed 'today' used for due-date and overdue calculations",
    )
    two_digit_year_rule: Literal["century", "pivot"] = Field(
        default="century",
        description="Two-digit years: century (always 20xx) or pivot (>50 is 19xx, else 20xx)",
    )

    # Field extraction
    max_items: int = Field(
        default=3,
        ge=1,
        le=3,
        description="Maximum number of line items kept per invoice",
    )

    # Question answering
    due_soon_default_days: int = Field(
        default=30,
        ge=0,
        description="Window used for 'due next' questions when no number is given",
    )
    answer_providers: list[str] = Field(
        default=["openai", "groq", "rules"],
        description="Answer cascade order: openai (function calling), groq/ollama (plain), rules",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used for function-calling answers",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq OpenAI-compatible endpoint",
    )
    groq_model: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq model used for plain chat answers",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_model: str = Field(
        default="qwen2.5:7b",
        description="Ollama model used for plain chat answers",
    )
    ai_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for a single remote AI request",
    )
    ai_temperature: float = Field(
        default=0.1,
        ge=0,
        le=2,
        description="Sampling temperature for remote AI requests",
    )
    ai_max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Maximum tokens in a remote AI answer",
    )

    # Document intake
    download_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for fetching invoice documents by URL",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted upload size (10MB)",
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()

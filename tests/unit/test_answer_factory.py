"""Unit tests for the answer provider registry and cascade factory.

Tests cover:
- Provider registry lookups and registration
- Cascade ordering from configuration
- Error handling for unknown providers
"""

import logging
from collections.abc import Sequence

import pytest

from services.assistant.base import AnswerProvider, AnswerResult
from services.assistant.factory import ProviderRegistry, create_answer_providers
from services.assistant.groq_provider import GroqAnswerProvider
from services.assistant.openai_provider import OpenAIAnswerProvider
from services.assistant.rules_provider import RuleAnswerProvider
from services.invoices.schema import InvoiceRecord
from services.shared.config import Settings


class EchoProvider(AnswerProvider):
    """Answers with the question itself."""

    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        return self._success(question)

    def is_available(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "echo"


def test_registry_default_providers() -> None:
    """Test that registry contains every cascade tier."""
    assert {"openai", "groq", "ollama", "rules"} <= set(ProviderRegistry())


def test_registry_always_knows_rules() -> None:
    registry = ProviderRegistry({"echo": EchoProvider})

    assert "rules" in registry
    assert registry.resolve(["echo"]) == ["echo", "rules"]


def test_register_is_local_to_registry() -> None:
    registry = ProviderRegistry()
    registry.register("echo", EchoProvider)

    assert "echo" in registry
    assert "echo" not in ProviderRegistry()


def test_resolve_drops_duplicates_and_appends_rules() -> None:
    assert ProviderRegistry().resolve(["groq", "openai", "groq"]) == ["groq", "openai", "rules"]


def test_resolve_ignores_tiers_after_rules(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        order = ProviderRegistry().resolve(["openai", "rules", "groq"])

    assert order == ["openai", "rules"]
    assert "Ignoring providers after 'rules': groq" in caplog.text


def test_resolve_unknown_provider() -> None:
    """Test that unknown provider raises ValueError listing the alternatives."""
    with pytest.raises(ValueError, match="Unknown answer provider") as exc_info:
        ProviderRegistry().resolve(["openai", "nonexistent"])

    assert "'nonexistent'" in str(exc_info.value)
    assert "Available providers" in str(exc_info.value)


def test_create_answer_providers_default() -> None:
    """Default cascade is function calling, then plain chat, then rules."""
    providers = create_answer_providers(Settings(_env_file=None))

    assert [type(p) for p in providers] == [
        OpenAIAnswerProvider,
        GroqAnswerProvider,
        RuleAnswerProvider,
    ]


def test_create_answer_providers_custom_registry() -> None:
    registry = ProviderRegistry()
    registry.register("echo", EchoProvider)
    settings = Settings(_env_file=None, answer_providers=["echo"])

    providers = create_answer_providers(settings, registry)

    assert [p.provider_name for p in providers] == ["echo", "rules"]


def test_create_answer_providers_logs_cascade(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        create_answer_providers(Settings(_env_file=None))

    assert "Answer cascade: openai -> groq -> rules" in caplog.text


def test_create_answer_providers_unknown_name() -> None:
    settings = Settings(_env_file=None, answer_providers=["anthropic"])

    with pytest.raises(ValueError, match="Unknown answer provider"):
        create_answer_providers(settings)

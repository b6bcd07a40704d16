"""Abstract base class for question answering providers.

Each tier of the answer cascade (remote function calling, remote plain chat,
local rules) implements the same interface so the orchestrator can walk an
ordered list of providers until one succeeds.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel

from services.invoices.schema import InvoiceRecord
from services.shared.config import Settings


class AnswerResult(BaseModel):
    """Result of answering a question.

    Attributes:
        answer: Answer text or None if the provider failed
        success: Whether the provider produced an answer
        error: Error message if the provider failed
        provider: Name of the provider that produced this result (e.g., 'openai', 'rules')
    """

    answer: str | None
    success: bool
    error: str | None = None
    provider: str


class AnswerProvider(ABC):
    """Abstract base class for invoice question answering providers.

    Providers report failures through AnswerResult instead of raising, so the
    orchestrator can fall through to the next tier.

    Example implementations:
    - OpenAIAnswerProvider: function calling against the local analysis
    - GroqAnswerProvider / OllamaAnswerProvider: plain chat with invoice context
    - RuleAnswerProvider: local rule-based query engine
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        """Answer a question about a non-empty invoice collection.

        Args:
            question: Free-form user question
            invoices: Snapshot of the invoice collection

        Returns:
            AnswerResult with the answer or error
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured (API keys, reachable server).

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'openai', 'rules')
        """
        pass

    def _failure(self, error: str) -> AnswerResult:
        return AnswerResult(answer=None, success=False, error=error, provider=self.provider_name)

    def _success(self, answer: str) -> AnswerResult:
        return AnswerResult(answer=answer, success=True, provider=self.provider_name)

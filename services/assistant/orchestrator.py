"""Answer orchestration across the provider cascade.

Walks the configured providers in order (remote function calling, remote
plain chat, local rules) and returns the first successful answer. Each
provider is tried at most once per question; failures are logged and never
surfaced to the caller.
"""

import logging
from collections.abc import Sequence

from services.assistant.base import AnswerProvider, AnswerResult
from services.assistant.factory import create_answer_providers
from services.invoices.schema import InvoiceRecord
from services.query.engine import EMPTY_MESSAGE, RuleBasedQueryEngine
from services.shared.config import Settings

logger = logging.getLogger(__name__)


class AnswerOrchestrator:
    """Answers invoice questions with remote-to-local fallback.

    Example:
        >>> orchestrator = AnswerOrchestrator(Settings())
        >>> result = orchestrator.answer("Which invoices are overdue?", store.snapshot())
        >>> result.provider
        'rules'
    """

    def __init__(
        self, settings: Settings, providers: Sequence[AnswerProvider] | None = None
    ) -> None:
        """Initialize orchestrator.

        Args:
            settings: Application settings
            providers: Cascade in order; built from settings when omitted
        """
        self.settings = settings
        self.providers = (
            list(providers) if providers is not None else create_answer_providers(settings)
        )
        self.rules = RuleBasedQueryEngine(settings)

    def answer(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        """Answer a question about the invoices.

        Args:
            question: Free-form user question
            invoices: Snapshot of the invoice collection

        Returns:
            AnswerResult whose ``provider`` names the tier that answered
        """
        snapshot = tuple(invoices)
        if not snapshot:
            logger.info("No invoices available, returning empty-state message")
            return AnswerResult(answer=EMPTY_MESSAGE, success=True, provider="none")

        for provider in self.providers:
            if not provider.is_available():
                logger.debug(f"Skipping unavailable answer provider: {provider.provider_name}")
                continue

            result = self._attempt(provider, question, snapshot)
            if result.success and result.answer:
                logger.info(f"Question answered by {result.provider}")
                return result
            logger.warning(
                f"Answer provider '{provider.provider_name}' failed, falling back: {result.error}"
            )

        logger.info("All configured providers failed, answering with rule engine")
        return AnswerResult(
            answer=self.rules.answer(question, snapshot), success=True, provider="rules"
        )

    @staticmethod
    def _attempt(
        provider: AnswerProvider, question: str, invoices: Sequence[InvoiceRecord]
    ) -> AnswerResult:
        try:
            return provider.answer_question(question, invoices)
        except Exception as e:
            logger.error(f"Answer provider '{provider.provider_name}' raised: {e}", exc_info=True)
            return AnswerResult(
                answer=None, success=False, error=str(e), provider=provider.provider_name
            )

"""Local rule-based answer provider, the last tier of the cascade."""

from collections.abc import Sequence

from services.assistant.base import AnswerProvider, AnswerResult
from services.invoices.schema import InvoiceRecord
from services.query.engine import RuleBasedQueryEngine
from services.shared.config import Settings


class RuleAnswerProvider(AnswerProvider):
    """Answers with the deterministic rule engine. Always available, never fails."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.engine = RuleBasedQueryEngine(settings)

    @property
    def provider_name(self) -> str:
        return "rules"

    def is_available(self) -> bool:
        return True

    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        return self._success(self.engine.answer(question, invoices))

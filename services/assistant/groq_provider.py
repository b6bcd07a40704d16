"""Groq-based plain chat answer provider.

Sends the invoice context and question to Groq's OpenAI-compatible chat
endpoint and returns the model's text as-is. Requires GROQ_API_KEY.
"""

import logging
import os
from collections.abc import Sequence

from openai import OpenAI

from services.assistant.base import AnswerProvider, AnswerResult
from services.invoices.schema import InvoiceRecord
from services.query.analysis import build_invoice_context
from services.shared.config import Settings

logger = logging.getLogger(__name__)


def build_chat_prompt(context: str) -> str:
    """System prompt for plain (non function-calling) chat providers."""
    return f"""You are an intelligent invoice assistant. From the given invoice data, \
answer the user's question accurately and completely.

{context}

Instructions:
- Answer ONLY based on the invoice data provided above
- Be specific with numbers, dates, and vendor names
- If asking about "on time" invoices, those are invoices that are not overdue
- If asking about highest/lowest values, provide exact amounts and vendor names
- If asking about amounts less than/above certain values, filter and show only matching results
- If the question cannot be answered from the invoice data, say \
"I cannot find that information in the current invoices"
- Always be precise and helpful"""


class GroqAnswerProvider(AnswerProvider):
    """Plain chat answer provider backed by Groq."""

    def __init__(self, settings: Settings) -> None:
        """Initialize Groq answer provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._client: OpenAI | None = None

    @property
    def provider_name(self) -> str:
        return "groq"

    def is_available(self) -> bool:
        return os.getenv("GROQ_API_KEY") is not None

    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        if not self.is_available():
            return self._failure("GROQ_API_KEY environment variable not set")

        try:
            api_key = os.getenv("GROQ_API_KEY")
            if self._client is None or self._client.api_key != api_key:
                self._client = OpenAI(
                    api_key=api_key,
                    base_url=self.settings.groq_base_url,
                    timeout=self.settings.ai_timeout_seconds,
                    max_retries=0,
                )

            completion = self._client.chat.completions.create(
                model=self.settings.groq_model,
                messages=[
                    {
                        "role": "system",
                        "content": build_chat_prompt(
                            build_invoice_context(invoices, self.settings.reference_date)
                        ),
                    },
                    {"role": "user", "content": question},
                ],
                temperature=self.settings.ai_temperature,
                max_tokens=self.settings.ai_max_tokens,
            )
            content = completion.choices[0].message.content if completion.choices else None
            if not content:
                return self._failure("Empty answer in API response")
            return self._success(content.strip())

        except Exception as e:
            logger.warning(f"Groq answer failed: {e}")
            return self._failure(f"Groq answer failed: {str(e)}")

"""Ollama-based plain chat answer provider for self-hosted LLM inference.

Alternative to Groq for the plain chat tier when invoice data must not leave
the premises. Requires an Ollama server (default localhost:11434).
See: https://ollama.ai/
"""

import logging
from collections.abc import Sequence

import httpx

from services.assistant.base import AnswerProvider, AnswerResult
from services.assistant.groq_provider import build_chat_prompt
from services.invoices.schema import InvoiceRecord
from services.query.analysis import build_invoice_context
from services.shared.config import Settings

logger = logging.getLogger(__name__)


class OllamaAnswerProvider(AnswerProvider):
    """Plain chat answer provider backed by a local Ollama server."""

    def __init__(self, settings: Settings) -> None:
        """Initialize Ollama answer provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url
        self._model = settings.ollama_model
        self._client = httpx.Client(timeout=settings.ai_timeout_seconds)

    @property
    def provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Check if Ollama server is running and model is available.

        Returns:
            True if Ollama server responds and model is loaded
        """
        try:
            response = self._client.get(f"{self._base_url}/api/tags")
            if response.status_code != 200:
                return False
            models = response.json().get("models", [])
            model_names = [m.get("name", "").split(":")[0] for m in models]
            return self._model.split(":")[0] in model_names
        except Exception:
            return False

    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        context = build_invoice_context(invoices, self.settings.reference_date)
        try:
            response = self._client.post(
                f"{self._base_url}/api/chat",
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": build_chat_prompt(context)},
                        {"role": "user", "content": question},
                    ],
                    "stream": False,
                    "options": {
                        "temperature": self.settings.ai_temperature,
                        "num_predict": self.settings.ai_max_tokens,
                    },
                },
            )
            response.raise_for_status()
            content = response.json().get("message", {}).get("content", "")
            if not content:
                return self._failure("Empty answer in Ollama response")
            return self._success(content.strip())

        except Exception as e:
            logger.warning(f"Ollama answer failed: {e}")
            return self._failure(f"Ollama answer failed: {str(e)}")

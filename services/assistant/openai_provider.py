"""OpenAI-based answer provider using function calling.

The model is forced (via ``tool_choice``) to call ``analyze_invoices``; the
tool runs locally against the live invoices and the model only phrases the
structured result.
This keeps every number in the answer grounded in the invoice data.

Requires OPENAI_API_KEY environment variable. SDK retries are disabled: the
orchestrator moves on to the next tier instead of retrying.
"""

import json
import logging
import os
from collections.abc import Sequence
from typing import Any

from openai import OpenAI

from services.assistant.base import AnswerProvider, AnswerResult
from services.invoices.schema import InvoiceRecord
from services.query.analysis import ANALYSIS_TYPES, analyze_invoices, invoice_payload
from services.shared.config import Settings

logger = logging.getLogger(__name__)

FUNCTION_NAME = "analyze_invoices"


class OpenAIAnswerProvider(AnswerProvider):
    """Function-calling answer provider using GPT-4o-mini."""

    def __init__(self, settings: Settings) -> None:
        """Initialize OpenAI answer provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._client: OpenAI | None = None

    @property
    def provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set
        """
        return os.getenv("OPENAI_API_KEY") is not None

    def answer_question(self, question: str, invoices: Sequence[InvoiceRecord]) -> AnswerResult:
        if not self.is_available():
            return self._failure("OPENAI_API_KEY environment variable not set")

        try:
            api_key = os.getenv("OPENAI_API_KEY")
            if self._client is None or self._client.api_key != api_key:
                self._client = OpenAI(
                    api_key=api_key,
                    timeout=self.settings.ai_timeout_seconds,
                    max_retries=0,
                )

            messages: list[dict[str, Any]] = [
                {"role": "system", "content": self._build_system_prompt(invoices)},
                {"role": "user", "content": question},
            ]
            response = self._client.chat.completions.create(  # type: ignore[call-overload]
                model=self.settings.openai_model,
                messages=messages,
                tools=[{"type": "function", "function": self._get_function_schema()}],
                tool_choice={"type": "function", "function": {"name": FUNCTION_NAME}},
                temperature=self.settings.ai_temperature,
            )

            message = response.choices[0].message
            if not message.tool_calls:
                return self._failure("No tool call in API response")
            tool_call = message.tool_calls[0]
            if tool_call.function.name != FUNCTION_NAME:
                return self._failure(f"Unknown function requested: {tool_call.function.name}")

            args = json.loads(tool_call.function.arguments or "{}")
            logger.info(f"Executing {FUNCTION_NAME} locally ({args.get('analysis_type')})")
            analysis = analyze_invoices(
                invoices,
                self.settings.reference_date,
                query=args.get("query") or question,
                analysis_type=args.get("analysis_type") or "custom_analysis",
            )

            follow_up = self._client.chat.completions.create(  # type: ignore[call-overload]
                model=self.settings.openai_model,
                messages=[
                    *messages,
                    {
                        "role": "assistant",
                        "content": None,
                        "tool_calls": [
                            {
                                "id": tool_call.id,
                                "type": "function",
                                "function": {
                                    "name": FUNCTION_NAME,
                                    "arguments": tool_call.function.arguments,
                                },
                            }
                        ],
                    },
                    {
                        "role": "tool",
                        "tool_call_id": tool_call.id,
                        "content": json.dumps(analysis),
                    },
                ],
                temperature=self.settings.ai_temperature,
                max_tokens=self.settings.ai_max_tokens,
            )
            content = follow_up.choices[0].message.content
            if not content:
                return self._failure("Empty answer in API response")
            return self._success(content.strip())

        except Exception as e:
            logger.warning(f"OpenAI answer failed: {e}")
            return self._failure(f"OpenAI answer failed: {str(e)}")

    def _build_system_prompt(self, invoices: Sequence[InvoiceRecord]) -> str:
        """System instruction with the full invoice data embedded."""
        return f"""You are an invoice analysis assistant. You have access to complete invoice \
data and must ALWAYS call the {FUNCTION_NAME} function to get accurate information.

CRITICAL RULES:
- ALWAYS use the {FUNCTION_NAME} function for ANY invoice question
- NEVER provide answers without calling the function first
- Be specific with numbers, vendor names, and dates
- No generic responses

INVOICE DATA:
{json.dumps(invoice_payload(invoices, self.settings.reference_date), indent=2)}"""

    def _get_function_schema(self) -> dict[str, Any]:
        """Get OpenAI function calling schema for the local analysis.

        Returns:
            Function definition dict for OpenAI API
        """
        return {
            "name": FUNCTION_NAME,
            "description": (
                "Analyze invoice data for any question about totals, amounts, due dates, "
                "vendors, overdue status, on-time status, or any other invoice analysis."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "The specific question being asked",
                    },
                    "analysis_type": {
                        "type": "string",
                        "enum": ANALYSIS_TYPES,
                        "description": "Type of analysis",
                    },
                },
                "required": ["query", "analysis_type"],
            },
        }

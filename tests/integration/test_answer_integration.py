"""Integration tests for the remote answer tiers.

These tests require:
- OPENAI_API_KEY environment variable set
- Internet connection to OpenAI API

Tests are skipped if OPENAI_API_KEY is not available.
"""

import os

import pytest

from services.assistant.openai_provider import OpenAIAnswerProvider
from services.assistant.orchestrator import AnswerOrchestrator
from services.extraction.fields import FieldExtractor
from services.invoices.samples import load_sample_invoices
from services.invoices.store import InvoiceStore
from services.shared.config import Settings

# Skip all tests in this module if no API key available
pytestmark = pytest.mark.skipif(
    not os.getenv("OPENAI_API_KEY"),
    reason="OPENAI_API_KEY not set - skipping integration tests",
)


@pytest.fixture
def settings() -> Settings:
    """Create settings for integration tests."""
    return Settings()


def test_function_calling_answer_names_highest_vendor(settings: Settings) -> None:
    """The answer is phrased from the locally computed analysis."""
    provider = OpenAIAnswerProvider(settings)

    result = provider.answer_question(
        "Which vendor has the highest invoice?", load_sample_invoices()
    )

    assert result.success is True
    assert result.answer is not None
    assert "Apple" in result.answer


def test_extracted_invoice_is_answerable(settings: Settings) -> None:
    """Extracted text flows through the store into the cascade."""
    invoice_text = """
    Sold By: Northwind Traders, 9 Harbour Road
    Invoice Number: NW-2025-0815
    Invoice Date: 15/08/2025
    Due Date: 30/09/2025
    Description: Espresso machine
    Grand Total: $2,399.00
    """
    store = InvoiceStore()
    store.add(FieldExtractor(settings).extract(invoice_text, "northwind.pdf").to_record())

    result = AnswerOrchestrator(settings, providers=[OpenAIAnswerProvider(settings)]).answer(
        "How much do we owe Northwind Traders?", store.snapshot()
    )

    assert result.answer is not None
    assert "2399" in result.answer.replace(",", "")

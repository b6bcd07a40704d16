"""Unit tests for the invoice assistant API.

Tests cover:
- Health check endpoints
- Invoice upload validation and extraction
- Invoice listing, deletion and sample data
- Chat questions
- Prometheus metrics endpoint
"""

from collections.abc import Generator
from datetime import date
from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from services.api import main
from services.api.main import app
from services.assistant.rules_provider import RuleAnswerProvider
from services.documents.service import DocumentText
from services.shared.config import Settings

PDF_TEXT = "Vendor: Acme Corp\nInvoice Number: ACME-0001\nGrand Total: $150.00"


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create test client with an empty invoice store."""
    main.store.clear()
    yield TestClient(app)
    main.store.clear()


@pytest.fixture
def rules_only() -> Generator[None, None, None]:
    """Answer chat questions with the local rule engine only."""
    provider = RuleAnswerProvider(Settings(_env_file=None))
    with patch.object(main.orchestrator, "providers", [provider]):
        yield


def test_health_check(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "service" in data


def test_readiness_check(client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ready"] is True


class TestInvoiceUpload:
    def test_upload_pdf(self, client: TestClient) -> None:
        files = {"invoice": ("acme.pdf", b"%PDF-1.4 ...", "application/pdf")}

        with patch("services.api.main.document_service.extract_text") as mock_extract:
            mock_extract.return_value = DocumentText(
                text=PDF_TEXT, filename="acme.pdf", source="pdf"
            )

            response = client.post("/api/invoices/upload", files=files)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Invoice processed successfully"
        assert data["data"]["vendor"] == "Acme Corp"
        assert data["data"]["invoice_number"] == "ACME-0001"
        assert data["data"]["formatted_total"] == "$150.00"
        assert len(main.store) == 1

    def test_undecodable_file_is_still_stored(self, client: TestClient) -> None:
        files = {"invoice": ("tesla_invoice.png", b"not an image", "image/png")}

        response = client.post("/api/invoices/upload", files=files)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["vendor"] == "Tesla"
        assert data["due_date"] == "Completed"

    def test_disallowed_extension(self, client: TestClient) -> None:
        files = {"invoice": ("notes.txt", b"hello", "text/plain")}

        response = client.post("/api/invoices/upload", files=files)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Only images and PDFs allowed"

    def test_file_too_large(self, client: TestClient) -> None:
        files = {"invoice": ("big.pdf", b"%PDF" + b"0" * 64, "application/pdf")}

        with patch.object(main.settings, "max_upload_bytes", 16):
            response = client.post("/api/invoices/upload", files=files)

        assert response.status_code == 413
        assert response.json()["detail"] == "File too large"

    def test_no_file_or_url(self, client: TestClient) -> None:
        response = client.post("/api/invoices/upload", data={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "No file or URL provided"

    def test_upload_url_form_field(self, client: TestClient) -> None:
        with patch("services.api.main.document_service.fetch_url") as mock_fetch:
            mock_fetch.return_value = DocumentText(text=PDF_TEXT, filename="a.pdf", source="pdf")

            response = client.post(
                "/api/invoices/upload", data={"url": "https://example.com/a.pdf"}
            )

        assert response.status_code == status.HTTP_200_OK
        mock_fetch.assert_called_once_with("https://example.com/a.pdf")

    def test_submit_url_json(self, client: TestClient) -> None:
        with patch("services.api.main.document_service.fetch_url") as mock_fetch:
            mock_fetch.return_value = DocumentText(text=PDF_TEXT, filename="a.pdf", source="pdf")

            response = client.post("/api/invoices/url", json={"url": "https://example.com/a.pdf"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["vendor"] == "Acme Corp"


class TestInvoiceCollection:
    def test_load_sample_and_list(self, client: TestClient) -> None:
        response = client.post("/api/invoices/sample")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "5 sample invoices loaded"

        invoices = client.get("/api/invoices").json()
        assert len(invoices) == 5
        assert invoices[0]["vendor"] == "Amazon Web Services"
        assert invoices[0]["is_overdue"] is True

    def test_listing_follows_reference_date(self, client: TestClient) -> None:
        client.post("/api/invoices/sample")

        with patch.object(main.settings, "reference_date", date(2030, 1, 1)):
            invoices = client.get("/api/invoices").json()

        assert all(inv["is_overdue"] for inv in invoices)
        assert all(inv["days_until_due"] < 0 for inv in invoices)

    def test_delete_invoice(self, client: TestClient) -> None:
        client.post("/api/invoices/sample")
        invoice_id = client.get("/api/invoices").json()[0]["id"]

        response = client.delete(f"/api/invoices/{invoice_id}")

        assert response.status_code == status.HTTP_200_OK
        assert len(client.get("/api/invoices").json()) == 4

    def test_delete_unknown_invoice(self, client: TestClient) -> None:
        response = client.delete("/api/invoices/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Invoice not found"


class TestChat:
    def test_answer_from_rules(self, client: TestClient, rules_only: None) -> None:
        client.post("/api/invoices/sample")

        response = client.post("/api/chat", json={"question": "Which invoices are overdue?"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["question"] == "Which invoices are overdue?"
        assert data["provider"] == "rules"
        assert data["response"].startswith("1 overdue invoices: Amazon Web Services")

    def test_empty_store(self, client: TestClient, rules_only: None) -> None:
        response = client.post("/api/chat", json={"question": "What is the total?"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["provider"] == "none"
        assert data["response"].startswith("No invoices loaded")

    @pytest.mark.parametrize("body", [{}, {"question": "   "}])
    def test_question_required(self, client: TestClient, body: dict[str, str]) -> None:
        response = client.post("/api/chat", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Question is required"


def test_metrics_endpoint(client: TestClient) -> None:
    """Test Prometheus metrics endpoint."""
    client.get("/health")
    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert "http_requests_total" in response.text

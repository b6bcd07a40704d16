"""FastAPI application for the invoice assistant.

Thin HTTP adapter around the core:
- Invoice upload (file or URL) -> document text -> field extraction -> store
- Invoice listing, deletion and sample data loading
- Chat questions answered by the provider cascade
- Health, readiness and Prometheus metrics endpoints

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile, status
from pydantic import BaseModel

from services.api import metrics
from services.assistant.orchestrator import AnswerOrchestrator
from services.documents.service import DocumentText, DocumentTextService
from services.extraction.fields import FieldExtractor
from services.invoices.samples import load_sample_invoices
from services.invoices.store import InvoiceStore
from services.shared.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Invoice Assistant",
    description="Invoice field extraction and natural-language invoice questions",
    version=settings.service_version,
)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".pdf", ".webp"}

store = InvoiceStore()
document_service = DocumentTextService(settings)
extractor = FieldExtractor(settings)
orchestrator = AnswerOrchestrator(settings)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics."""
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()
    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


class ApiResponse(BaseModel):
    """Standard success envelope."""

    success: bool = True
    message: str
    data: Any = None


class UrlRequest(BaseModel):
    """Invoice URL submission."""

    url: str


class ChatRequest(BaseModel):
    """Chat question."""

    question: str | None = None


class ChatAnswer(BaseModel):
    """Chat answer with the cascade tier that produced it."""

    question: str
    response: str
    provider: str


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint for readiness probe."""
    return ReadinessResponse(ready=True)


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.get("/api/invoices", tags=["Invoices"])
def list_invoices() -> list[dict[str, Any]]:
    """All stored invoices with derived display fields."""
    invoices = store.snapshot()
    logger.info(f"Getting all invoices: {len(invoices)} found")
    return [inv.display_data(settings.reference_date) for inv in invoices]


def _store_document(document: DocumentText) -> ApiResponse:
    fields = extractor.extract(document.text, document.filename)
    invoice = store.add(fields.to_record())
    metrics.invoices_processed_total.labels(source=document.source).inc()
    metrics.invoices_stored.set(len(store))
    return ApiResponse(
        message="Invoice processed successfully",
        data=invoice.display_data(settings.reference_date),
    )


@app.post("/api/invoices/upload", response_model=ApiResponse, tags=["Invoices"])
async def upload_invoice(
    invoice: UploadFile | None = File(None, description="Invoice PDF or image"),  # noqa: B008
    url: str | None = Form(None, description="Invoice URL (alternative to a file)"),
) -> ApiResponse:
    """Upload an invoice file (or submit a URL) and extract its fields.

    Files that cannot be decoded are still accepted: the file name is used as
    the document text and unresolved fields take their defaults.

    Raises:
        HTTPException: 400 if neither file nor URL is given or the file type is
            not allowed, 413 if the file is too large
    """
    if invoice is not None and invoice.filename:
        if Path(invoice.filename).suffix.lower() not in ALLOWED_EXTENSIONS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Only images and PDFs allowed"
            )
        content = await invoice.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File too large")
        logger.info(f"Processing uploaded file: {invoice.filename}")
        document = document_service.extract_text(content, invoice.filename, invoice.content_type)
        return _store_document(document)

    if url:
        logger.info(f"Processing URL: {url}")
        return _store_document(document_service.fetch_url(url))

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file or URL provided")


@app.post("/api/invoices/url", response_model=ApiResponse, tags=["Invoices"])
def submit_invoice_url(request: UrlRequest) -> ApiResponse:
    """Fetch an invoice by URL (JSON body) and extract its fields."""
    logger.info(f"Processing URL: {request.url}")
    return _store_document(document_service.fetch_url(request.url))


@app.delete("/api/invoices/{invoice_id}", response_model=ApiResponse, tags=["Invoices"])
def delete_invoice(invoice_id: str) -> ApiResponse:
    """Delete an invoice by id.

    Raises:
        HTTPException: 404 if no invoice has this id
    """
    if store.delete(invoice_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    metrics.invoices_stored.set(len(store))
    return ApiResponse(message="Invoice deleted successfully")


@app.post("/api/invoices/sample", response_model=ApiResponse, tags=["Invoices"])
def load_sample_data() -> ApiResponse:
    """Replace the stored invoices with the sample set."""
    store.replace_all(load_sample_invoices())
    metrics.invoices_stored.set(len(store))
    logger.info(f"Sample data loaded: {len(store)} invoices")
    return ApiResponse(
        message=f"{len(store)} sample invoices loaded",
        data=[inv.display_data(settings.reference_date) for inv in store.snapshot()],
    )


@app.post("/api/chat", response_model=ApiResponse, tags=["Chat"])
def chat(request: ChatRequest) -> ApiResponse:
    """Answer a question about the stored invoices.

    Raises:
        HTTPException: 400 if the question is missing or blank
    """
    if not request.question or not request.question.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question is required")

    question = request.question.strip()
    logger.info(f"Question: {question!r} ({len(store)} invoices available)")

    start = time.time()
    result = orchestrator.answer(question, store.snapshot())
    metrics.answer_duration_seconds.observe(time.time() - start)
    metrics.answers_total.labels(provider=result.provider).inc()

    answer = ChatAnswer(question=question, response=result.answer or "", provider=result.provider)
    return ApiResponse(message="Question processed", data=answer.model_dump())

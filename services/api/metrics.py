"""Prometheus metrics for the invoice assistant API.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Invoice intake by document source
- Answers by cascade tier

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Invoice intake metrics
invoices_processed_total = Counter(
    "invoices_processed_total",
    "Total invoices extracted",
    ["source"],  # pdf, ocr, text, filename
)

invoices_stored = Gauge(
    "invoices_stored",
    "Invoices currently held in memory",
)

# Question answering metrics
answers_total = Counter(
    "answers_total",
    "Total questions answered",
    ["provider"],  # openai, groq, ollama, rules, none
)

answer_duration_seconds = Histogram(
    "answer_duration_seconds",
    "Time to answer a question across the provider cascade",
    buckets=(0.01, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST

"""Fixed sample invoice set for demos and tests."""

from decimal import Decimal

from services.invoices.schema import InvoiceRecord

SAMPLE_INVOICES: list[dict[str, object]] = [
    {
        "vendor": "Amazon Web Services",
        "invoice_number": "AWS-2024-001",
        "invoice_date": "2025-08-20",
        "due_date": "2025-09-05",
        "total": Decimal("2450.00"),
        "items": ["EC2 Instance", "S3 Storage", "CloudFront CDN"],
    },
    {
        "vendor": "Microsoft Corporation",
        "invoice_number": "MS-2024-043",
        "invoice_date": "2025-08-25",
        "due_date": "2025-09-10",
        "total": Decimal("3100.00"),
        "items": ["Office 365 License", "Azure Services", "Teams Premium"],
    },
    {
        "vendor": "Google LLC",
        "invoice_number": "GOOG-2024-028",
        "invoice_date": "2025-09-01",
        "due_date": "2025-09-20",
        "total": Decimal("1850.00"),
        "items": ["Google Cloud Platform", "Google Workspace", "YouTube Premium"],
    },
    {
        "vendor": "Apple Inc.",
        "invoice_number": "AAPL-2024-017",
        "invoice_date": "2025-08-30",
        "due_date": "2025-09-15",
        "total": Decimal("4200.00"),
        "items": ["MacBook Pro", "iPhone 15", "Apple Care"],
    },
    {
        "vendor": "Tesla Inc.",
        "invoice_number": "TSLA-2024-009",
        "invoice_date": "2025-09-02",
        "due_date": "2025-09-25",
        "total": Decimal("1500.00"),
        "items": ["Supercharger Credits", "Service Package", "Model Y Accessories"],
    },
]


def load_sample_invoices() -> list[InvoiceRecord]:
    """Build fresh records (new ids) for the sample set."""
    return [InvoiceRecord(**data) for data in SAMPLE_INVOICES]  # type: ignore[arg-type]

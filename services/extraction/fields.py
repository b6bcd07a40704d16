"""Rule-based invoice field extraction.

Turns raw document text into the fields of an InvoiceRecord using ordered
pattern lists:
- Each field has a priority-ordered list of patterns; the first confident match wins
- Amounts are collected across all patterns and the largest one is taken
- Every field has a default, so extraction never fails on malformed text

Only the synthetic invoice number and the placeholder total are
non-deterministic; both come from an injectable EntropySource.
"""

import logging
import re
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, Field

from services.extraction.entropy import EntropySource, SystemEntropy
from services.invoices.schema import UNKNOWN_VENDOR, InvoiceRecord
from services.shared.config import Settings
from services.shared.dates import COMPLETED, format_date, normalize_date

logger = logging.getLogger(__name__)

DEFAULT_ITEM = "Service"

VENDOR_LABEL_PATTERNS = [
    re.compile(r"Sold[ \t]*By:[ \t]*([^,\n]+)", re.IGNORECASE),
    re.compile(r"Vendor:[ \t]*([^,\n]+)", re.IGNORECASE),
    re.compile(r"Company:[ \t]*([^,\n]+)", re.IGNORECASE),
    re.compile(r"From:[ \t]*([^,\n]+)", re.IGNORECASE),
    re.compile(r"Bill[ \t]*From:[ \t]*([^,\n]+)", re.IGNORECASE),
    re.compile(r"Supplier:[ \t]*([^,\n]+)", re.IGNORECASE),
]

KNOWN_VENDORS = [
    "MPS Telecom Retail Private Limited",
    "Flipkart Internet Private Limited",
    "East Repair Inc.",
    "Amazon",
    "Microsoft",
    "Google",
    "Apple",
    "Tesla",
]

VENDOR_LINE_EXCLUDE = re.compile(r"invoice|bill|tax|date|order|phone|address|email", re.IGNORECASE)

INVOICE_NUMBER_PATTERNS = [
    re.compile(
        r"Invoice[ \t]*(?:Number|No\b\.?|#)[ \t]*[:#]?[ \t]*([A-Z0-9\-/]+)", re.IGNORECASE
    ),
    re.compile(r"Bill[ \t]*(?:Number|No\b\.?|#)[ \t]*[:#]?[ \t]*([A-Z0-9\-/]+)", re.IGNORECASE),
    re.compile(
        r"Tax[ \t]*Invoice[ \t]*(?:Number|No\b\.?|#)?[ \t]*[:#]?[ \t]*([A-Z0-9\-/]+)",
        re.IGNORECASE,
    ),
    re.compile(r"Number[ \t]*#[ \t]*([A-Z0-9\-/]+)", re.IGNORECASE),
    re.compile(r"\b([A-Z]{2,}[0-9]{8,})\b"),
    re.compile(r"\b([A-Z]+[0-9]+[A-Z]*[0-9]+)\b"),
]

_AMOUNT = r"([0-9][0-9,]*(?:\.[0-9]+)?)"
_CURRENCY = r"(?:[₹$€£]|Rs\.?|INR|USD)"

# Priority order: grand total label, total/amount labels, any currency-prefixed number
TOTAL_PATTERNS = [
    re.compile(rf"Grand[ \t]*Total[ \t]*:?[ \t]*{_CURRENCY}?[ \t]*{_AMOUNT}", re.IGNORECASE),
    re.compile(rf"\bTotal[ \t]*:?[ \t]*{_CURRENCY}?[ \t]*{_AMOUNT}", re.IGNORECASE),
    re.compile(rf"\bAmount[ \t]*:?[ \t]*{_CURRENCY}?[ \t]*{_AMOUNT}", re.IGNORECASE),
    re.compile(rf"{_CURRENCY}[ \t]*{_AMOUNT}"),
]

_DATE = r"(\d{4}[-/]\d{1,2}[-/]\d{1,2}|\d{1,2}[-/]\d{1,2}[-/](?:\d{4}|\d{2}))(?!\d)"

INVOICE_DATE_PATTERNS = [
    re.compile(rf"Invoice[ \t]*Date[ \t]*:?[ \t]*{_DATE}", re.IGNORECASE),
    re.compile(rf"(?<!due )\bDate[ \t]*:?[ \t]*{_DATE}", re.IGNORECASE),
    re.compile(_DATE),
]

DUE_DATE_PATTERNS = [
    re.compile(rf"Due[ \t]*Date[ \t]*:?[ \t]*{_DATE}", re.IGNORECASE),
    re.compile(rf"Payment[ \t]*Due[ \t]*:?[ \t]*{_DATE}", re.IGNORECASE),
    re.compile(rf"\bDue[ \t]*:?[ \t]*{_DATE}", re.IGNORECASE),
]

ITEM_PATTERNS = [
    re.compile(r"\bDescription[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(r"\bItem[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(r"\bProduct[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
    re.compile(r"\bService[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE),
]

ITEM_LINE_EXCLUDE = re.compile(r"invoice|date|total|amount|tax|[₹$€£]", re.IGNORECASE)

# Longer figures are reference numbers or OCR noise, not invoice totals
MAX_AMOUNT_DIGITS = 15


class ExtractedFields(BaseModel):
    """Invoice fields produced by FieldExtractor, before a record id is assigned."""

    vendor: str = Field(UNKNOWN_VENDOR, description="Vendor/supplier name")
    invoice_number: str = Field(..., description="Invoice identifier")
    invoice_date: str = Field(..., description="Invoice date (YYYY-MM-DD)")
    due_date: str = Field(COMPLETED, description="Due date or 'Completed'")
    total: Decimal = Field(..., ge=0, description="Invoice total amount")
    items: list[str] = Field(..., min_length=1, description="Line items")

    def to_record(self) -> InvoiceRecord:
        """Create an immutable InvoiceRecord with a fresh id."""
        return InvoiceRecord(**self.model_dump())


class FieldExtractor:
    """Extracts invoice fields from document text with ordered heuristics.

    Example:
        >>> extractor = FieldExtractor(Settings())
        >>> fields = extractor.extract("Vendor: Acme\\nGrand Total: $150.00", "a.pdf")
        >>> fields.total
        Decimal('150.00')
    """

    def __init__(self, settings: Settings, entropy: EntropySource | None = None) -> None:
        """Initialize extractor.

        Args:
            settings: Application settings
            entropy: Source for fallback invoice numbers and totals
        """
        self.settings = settings
        self.entropy = entropy or SystemEntropy()

    def extract(self, text: str, filename: str = "") -> ExtractedFields:
        """Extract all invoice fields.

        Args:
            text: Decoded document text (may be empty)
            filename: Original file or URL name, used as text when ``text`` is blank

        Returns:
            Complete field set; unresolved fields carry their defaults
        """
        source = text if text and text.strip() else (filename or "")
        logger.debug(f"Extracting invoice fields from {len(source)} characters")

        fields = ExtractedFields(
            vendor=self.extract_vendor(source),
            invoice_number=self.extract_invoice_number(source),
            invoice_date=self.extract_invoice_date(source),
            due_date=self.extract_due_date(source),
            total=self.extract_total(source),
            items=self.extract_items(source),
        )
        logger.info(
            f"Extracted invoice {fields.invoice_number}: vendor={fields.vendor!r}, "
            f"total={fields.total}, due={fields.due_date}"
        )
        return fields

    def extract_vendor(self, text: str) -> str:
        for pattern in VENDOR_LABEL_PATTERNS:
            match = pattern.search(text)
            if match:
                vendor = re.sub(r"[,.\n]", "", match.group(1)).strip()
                if len(vendor) > 2:
                    return vendor

        lowered = text.lower()
        for keyword in KNOWN_VENDORS:
            if keyword.lower() in lowered:
                return keyword

        for line in text.splitlines()[:10]:
            line = line.strip()
            if (
                len(line) > 5
                and re.search(r"[a-zA-Z]", line)
                and not VENDOR_LINE_EXCLUDE.search(line)
            ):
                return re.sub(r"[^a-zA-Z0-9\s]", "", line).strip()

        return UNKNOWN_VENDOR

    def extract_invoice_number(self, text: str) -> str:
        for pattern in INVOICE_NUMBER_PATTERNS:
            for match in pattern.finditer(text):
                number = match.group(1).strip()
                if len(number) >= 4:
                    return number
        return self.entropy.synthetic_invoice_number()

    def extract_total(self, text: str) -> Decimal:
        """Largest monetary amount found by any total pattern.

        The grand total is normally the largest figure on an invoice, so all
        candidates are compared instead of stopping at the first label.
        """
        best: Decimal | None = None
        for pattern in TOTAL_PATTERNS:
            for match in pattern.finditer(text):
                amount = self._parse_amount(match.group(1))
                if amount is not None and (best is None or amount > best):
                    best = amount

        if best is None:
            placeholder = self.entropy.placeholder_total()
            logger.debug(f"No total found, using placeholder {placeholder}")
            return placeholder
        return best

    def extract_invoice_date(self, text: str) -> str:
        found = self._first_date(text, INVOICE_DATE_PATTERNS)
        return found or format_date(self.settings.reference_date)

    def extract_due_date(self, text: str) -> str:
        return self._first_date(text, DUE_DATE_PATTERNS) or COMPLETED

    def extract_items(self, text: str) -> list[str]:
        limit = self.settings.max_items
        items: list[str] = []
        for pattern in ITEM_PATTERNS:
            for match in pattern.finditer(text):
                item = match.group(1).strip()
                if 3 < len(item) < 100:
                    items.append(item)

        if not items:
            for line in text.splitlines():
                line = line.strip()
                if 5 <= len(line) <= 80 and not ITEM_LINE_EXCLUDE.search(line):
                    items.append(line)
                    if len(items) >= limit:
                        break

        return items[:limit] if items else [DEFAULT_ITEM]

    def _first_date(self, text: str, patterns: list[re.Pattern[str]]) -> str | None:
        for pattern in patterns:
            for match in pattern.finditer(text):
                normalized = normalize_date(match.group(1), self.settings.two_digit_year_rule)
                if normalized:
                    return normalized
        return None

    @staticmethod
    def _parse_amount(raw: str) -> Decimal | None:
        cleaned = re.sub(r"[₹$€£,\s]", "", raw)
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        if amount <= 0 or amount.adjusted() >= MAX_AMOUNT_DIGITS:
            return None
        return amount

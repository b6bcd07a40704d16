"""Invoice record model.

Records are created once (by field extraction or from the sample set) and never
mutated afterwards. Derived display values are computed on read; the due-date
aging values need the caller's reference date.
"""

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from services.shared import dates
from services.shared.dates import COMPLETED

UNKNOWN_VENDOR = "Unknown Vendor"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InvoiceRecord(BaseModel):
    """Structured invoice extracted from a document.

    Attributes:
        id: Opaque unique identifier assigned at construction
        vendor: Vendor name, ``Unknown Vendor`` when unresolved
        invoice_number: Invoice identifier (synthetic when unresolved)
        invoice_date: ISO date the invoice was issued
        due_date: ISO due date or the ``Completed`` sentinel
        total: Non-negative invoice total
        items: One to three short line item descriptions
        processed_date: When the record was created
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id, description="Unique record identifier")
    vendor: str = Field(default=UNKNOWN_VENDOR, description="Vendor/supplier name")
    invoice_number: str = Field(..., min_length=1, description="Invoice identifier")
    invoice_date: str = Field(..., description="Invoice date (YYYY-MM-DD)")
    due_date: str = Field(default=COMPLETED, description="Due date (YYYY-MM-DD) or 'Completed'")
    total: Decimal = Field(..., ge=0, description="Invoice total amount")
    items: list[str] = Field(..., min_length=1, max_length=3, description="Line items")
    processed_date: datetime = Field(default_factory=_utc_now)

    @field_validator("invoice_date")
    @classmethod
    def _check_invoice_date(cls, value: str) -> str:
        if not dates.is_iso_date(value):
            raise ValueError(f"invoice_date must be YYYY-MM-DD, got {value!r}")
        return value

    @field_validator("due_date")
    @classmethod
    def _check_due_date(cls, value: str) -> str:
        if value != COMPLETED and not dates.is_iso_date(value):
            raise ValueError(f"due_date must be YYYY-MM-DD or '{COMPLETED}', got {value!r}")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def formatted_total(self) -> str:
        """Currency-formatted total."""
        return dates.format_currency(self.total)

    def days_until_due(self, today: date) -> int | None:
        """Days until due relative to the reference date, None when completed."""
        return dates.days_until_due(self.due_date, today)

    def is_overdue(self, today: date) -> bool:
        """Whether the due date lies before the reference date."""
        return dates.is_overdue(self.due_date, today)

    def display_data(self, today: date) -> dict[str, Any]:
        """Stored plus derived fields, JSON-ready.

        Args:
            today: Reference date for ``days_until_due`` and ``is_overdue``
        """
        return {
            **self.model_dump(mode="json"),
            "days_until_due": self.days_until_due(today),
            "is_overdue": self.is_overdue(today),
        }

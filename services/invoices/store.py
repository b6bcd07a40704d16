"""In-memory invoice collection.

The store is owned by the application layer and handed to extraction and
question answering by reference. Readers work on immutable snapshots.
"""

import logging
from collections.abc import Iterable, Iterator

from services.invoices.schema import InvoiceRecord

logger = logging.getLogger(__name__)


class InvoiceStore:
    """Ordered, process-local collection of invoice records keyed by id."""

    def __init__(self, invoices: Iterable[InvoiceRecord] = ()) -> None:
        self._invoices: list[InvoiceRecord] = []
        for invoice in invoices:
            self.add(invoice)

    def __len__(self) -> int:
        return len(self._invoices)

    def __iter__(self) -> Iterator[InvoiceRecord]:
        return iter(self.snapshot())

    def snapshot(self) -> tuple[InvoiceRecord, ...]:
        """Immutable view of the current records in insertion order."""
        return tuple(self._invoices)

    def add(self, invoice: InvoiceRecord) -> InvoiceRecord:
        """Append a record.

        Raises:
            ValueError: If a record with the same id is already stored
        """
        if self.get(invoice.id) is not None:
            raise ValueError(f"Duplicate invoice id: {invoice.id}")
        self._invoices.append(invoice)
        logger.info(
            f"Invoice added: {invoice.invoice_number} (ID: {invoice.id}), "
            f"total invoices: {len(self._invoices)}"
        )
        return invoice

    def get(self, invoice_id: str) -> InvoiceRecord | None:
        """Find a record by id."""
        return next((inv for inv in self._invoices if inv.id == invoice_id), None)

    def delete(self, invoice_id: str) -> InvoiceRecord | None:
        """Remove a record by id.

        Returns:
            The removed record, or None if no record had that id
        """
        invoice = self.get(invoice_id)
        if invoice is None:
            logger.info(f"Invoice not found: {invoice_id}")
            return None
        self._invoices = [inv for inv in self._invoices if inv.id != invoice_id]
        logger.info(f"Deleted invoice: {invoice.vendor} ({invoice_id})")
        return invoice

    def replace_all(self, invoices: Iterable[InvoiceRecord]) -> None:
        """Replace the whole collection, e.g. when loading the sample set."""
        self._invoices = []
        for invoice in invoices:
            self.add(invoice)

    def clear(self) -> None:
        self._invoices = []

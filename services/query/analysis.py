"""Structured invoice analysis and prompt context.

``analyze_invoices`` is the function a remote model is required to call before
answering: it runs locally against the live invoices so every number in the
final answer comes from this code rather than from the model.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from services.invoices.schema import InvoiceRecord
from services.query.engine import highest_invoice, lowest_invoice
from services.shared.dates import COMPLETED, format_currency

ANALYSIS_TYPES = [
    "total_calculation",
    "highest_amount",
    "lowest_amount",
    "farthest_due_date",
    "on_time_invoices",
    "overdue_analysis",
    "vendor_analysis",
    "custom_analysis",
]


def _sum(invoices: Sequence[InvoiceRecord]) -> Decimal:
    return sum((inv.total for inv in invoices), Decimal(0))


def _summary(inv: InvoiceRecord) -> dict[str, Any]:
    return {
        "vendor": inv.vendor,
        "amount": format_currency(inv.total),
        "invoice_number": inv.invoice_number,
        "due_date": inv.due_date,
    }


def analyze_invoices(
    invoices: Sequence[InvoiceRecord],
    today: date,
    query: str,
    analysis_type: str = "custom_analysis",
) -> dict[str, Any]:
    """Compute every aggregate a question about the invoices may need.

    Args:
        invoices: Non-empty invoice collection
        today: Reference date for overdue status and days until due
        query: The question being asked (echoed back for the model)
        analysis_type: Model-chosen category, one of ANALYSIS_TYPES

    Returns:
        JSON-serializable analysis with totals, extremes, due dates, status and vendors
    """
    total = _sum(invoices)
    count = len(invoices)
    average = total / count
    overdue = [inv for inv in invoices if inv.is_overdue(today)]
    on_time = [inv for inv in invoices if not inv.is_overdue(today)]

    dated = [inv for inv in invoices if inv.due_date != COMPLETED]
    farthest = max(dated, key=lambda inv: inv.due_date) if dated else None

    vendor_totals: dict[str, Decimal] = {}
    for inv in invoices:
        vendor_totals[inv.vendor] = vendor_totals.get(inv.vendor, Decimal(0)) + inv.total
    breakdown = [
        {"vendor": vendor, "total": float(amount), "formatted": format_currency(amount)}
        for vendor, amount in sorted(vendor_totals.items(), key=lambda kv: kv[1], reverse=True)
    ]

    return {
        "query": query,
        "analysis_type": analysis_type,
        "totals": {
            "count": count,
            "total_value": format_currency(total),
            "raw_total": float(total),
            "average": format_currency(average),
            "raw_average": float(average),
        },
        "amounts": {
            "highest": _summary(highest_invoice(invoices)),
            "lowest": _summary(lowest_invoice(invoices)),
        },
        "due_dates": {
            "farthest_due": (
                {**_summary(farthest), "days_until_due": farthest.days_until_due(today)}
                if farthest
                else None
            ),
        },
        "status": {
            "overdue_count": len(overdue),
            "on_time_count": len(on_time),
            "overdue_total": format_currency(_sum(overdue)),
            "on_time_total": format_currency(_sum(on_time)),
            "overdue_invoices": [
                {**_summary(inv), "days_overdue": abs(inv.days_until_due(today) or 0)}
                for inv in overdue
            ],
            "on_time_invoices": [
                {**_summary(inv), "days_until_due": inv.days_until_due(today)}
                for inv in on_time
            ],
        },
        "vendors": {
            "breakdown": breakdown,
            "highest_vendor": breakdown[0] if breakdown else None,
        },
    }


def invoice_payload(invoices: Sequence[InvoiceRecord], today: date) -> list[dict[str, Any]]:
    """Per-invoice detail for the function-calling system prompt."""
    return [
        {
            "id": inv.id,
            "vendor": inv.vendor,
            "invoice_number": inv.invoice_number,
            "total": float(inv.total),
            "formatted_total": inv.formatted_total,
            "invoice_date": inv.invoice_date,
            "due_date": inv.due_date,
            "items": inv.items,
            "is_overdue": inv.is_overdue(today),
            "days_until_due": inv.days_until_due(today),
        }
        for inv in invoices
    ]


def build_invoice_context(invoices: Sequence[InvoiceRecord], today: date) -> str:
    """Plain-text aggregate stats plus one line per invoice for chat prompts."""
    if not invoices:
        return "No invoices available."

    details = "\n".join(
        f"Invoice {inv.invoice_number}: {inv.vendor}, Amount: {inv.formatted_total}, "
        f"Date: {inv.invoice_date}, Due: {inv.due_date}, "
        f"Status: {'Overdue' if inv.is_overdue(today) else 'On Time'}"
        for inv in invoices
    )
    vendors = list(dict.fromkeys(inv.vendor for inv in invoices))
    overdue = sum(1 for inv in invoices if inv.is_overdue(today))

    return f"""INVOICE DATA:
Total Invoices: {len(invoices)}
Total Value: {format_currency(_sum(invoices))}
Vendors: {', '.join(vendors)}
On Time: {len(invoices) - overdue}
Overdue: {overdue}

DETAILED INVOICES:
{details}"""

"""Unit tests for the structured invoice analysis used by function calling."""

import json
from datetime import date

from services.invoices.samples import load_sample_invoices
from services.query.analysis import analyze_invoices, build_invoice_context, invoice_payload

TODAY = date(2025, 9, 10)


def test_analyze_invoices_aggregates() -> None:
    """Aggregates over the sample set."""
    result = analyze_invoices(
        load_sample_invoices(), TODAY, "Who is owed the most?", "highest_amount"
    )

    assert result["query"] == "Who is owed the most?"
    assert result["analysis_type"] == "highest_amount"
    assert result["totals"]["count"] == 5
    assert result["totals"]["total_value"] == "$13100.00"
    assert result["totals"]["raw_total"] == 13100.0
    assert result["totals"]["average"] == "$2620.00"
    assert result["amounts"]["highest"]["vendor"] == "Apple Inc."
    assert result["amounts"]["lowest"]["vendor"] == "Tesla Inc."


def test_analyze_invoices_due_dates_and_status() -> None:
    result = analyze_invoices(load_sample_invoices(), TODAY, "status")

    farthest = result["due_dates"]["farthest_due"]
    assert farthest["vendor"] == "Tesla Inc."
    assert farthest["days_until_due"] == 15

    status = result["status"]
    assert status["overdue_count"] == 1
    assert status["on_time_count"] == 4
    assert status["overdue_total"] == "$2450.00"
    assert status["overdue_invoices"][0]["days_overdue"] == 5


def test_analyze_invoices_vendor_breakdown_sorted() -> None:
    result = analyze_invoices(load_sample_invoices(), TODAY, "vendors", "vendor_analysis")

    vendors = [entry["vendor"] for entry in result["vendors"]["breakdown"]]
    assert vendors[0] == "Apple Inc."
    assert vendors[-1] == "Tesla Inc."
    assert result["vendors"]["highest_vendor"]["formatted"] == "$4200.00"


def test_analysis_is_json_serializable() -> None:
    invoices = load_sample_invoices()

    json.dumps(analyze_invoices(invoices, TODAY, "anything"))
    json.dumps(invoice_payload(invoices, TODAY))


def test_build_invoice_context() -> None:
    context = build_invoice_context(load_sample_invoices(), TODAY)

    assert context.startswith("INVOICE DATA:\nTotal Invoices: 5")
    assert "Total Value: $13100.00" in context
    assert "Invoice TSLA-2024-009: Tesla Inc., Amount: $1500.00" in context
    assert "Status: Overdue" in context


def test_build_invoice_context_empty() -> None:
    assert build_invoice_context([], TODAY) == "No invoices available."


def test_status_follows_reference_date() -> None:
    """Every sample invoice is overdue once the reference date moves past them."""
    later = date(2030, 1, 1)
    invoices = load_sample_invoices()

    status = analyze_invoices(invoices, later, "status")["status"]

    assert status["overdue_count"] == 5
    assert status["on_time_count"] == 0
    assert all(entry["is_overdue"] for entry in invoice_payload(invoices, later))
    assert "On Time: 0" in build_invoice_context(invoices, later)

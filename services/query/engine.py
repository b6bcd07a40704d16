"""Rule-based question answering over the invoice collection.

Questions are matched against an ordered battery of intents. Each intent pairs
a keyword predicate with a computation over the invoices; the first intent
whose predicate matches answers the question. The order is the priority, e.g.
"overdue" is checked before amount thresholds so that "over" inside
"overdue" never reads as "above".

Used as the last tier of the answer cascade, so it must never raise.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from functools import reduce

from services.invoices.schema import InvoiceRecord
from services.shared.config import Settings
from services.shared.dates import COMPLETED, format_currency

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No invoices loaded. Please upload invoices or load sample data first."
OFF_TOPIC_MESSAGE = (
    "I can only help with invoice-related questions. Please ask about invoice totals, "
    "due dates, vendors, amounts, or specific invoice details."
)
FALLBACK_MESSAGE = (
    "I cannot find that specific information in the current invoices. Please ask about "
    "invoice totals, vendors, due dates, amounts, or statistics."
)

OFF_TOPIC_PATTERN = re.compile(
    r"\b(?:weather|news|sports?|movies?|music|recipes?|health|travel|jokes?|story|stories"
    r"|games?|politics|hello|how are you|what is your name)\b"
)

_NUMBER = r"\$?\s*(\d[\d,]*(?:\.\d+)?)"

# Bare number is last so it never shadows a phrase-qualified amount
AMOUNT_PATTERNS = [
    re.compile(rf"\bless than\s*{_NUMBER}"),
    re.compile(rf"\bbelow\s*{_NUMBER}"),
    re.compile(rf"\bunder\s*{_NUMBER}"),
    re.compile(rf"\babove\s*{_NUMBER}"),
    re.compile(rf"\bover\s*{_NUMBER}"),
    re.compile(rf"\bmore than\s*{_NUMBER}"),
    re.compile(rf"\bgreater than\s*{_NUMBER}"),
    re.compile(rf"<\s*{_NUMBER}"),
    re.compile(rf">\s*{_NUMBER}"),
    re.compile(_NUMBER),
]

# Whole words only: "overview", "cover" and "understand" are not thresholds
BELOW_PATTERN = re.compile(r"\b(?:less than|below|under)\b|<")
ABOVE_PATTERN = re.compile(r"\b(?:more than|above|over|greater)\b|>")

Invoices = Sequence[InvoiceRecord]


@dataclass(frozen=True)
class Intent:
    """One entry of the intent battery.

    Attributes:
        name: Intent identifier, useful for tracing and tests
        matches: Predicate over the lower-cased question and the invoices
        handle: Computes the answer for the lower-cased question
    """

    name: str
    matches: Callable[[str, Invoices], bool]
    handle: Callable[[str, Invoices], str]


def extract_amount(question: str) -> Decimal | None:
    """First amount found by the ordered amount patterns."""
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(question.lower())
        if match:
            return Decimal(match.group(1).replace(",", ""))
    return None


def extract_number(question: str) -> int | None:
    """First integer in the question, e.g. the N in 'due in the next N days'."""
    match = re.search(r"(\d+)", question)
    return int(match.group(1)) if match else None


def _has_any(question: str, *keywords: str) -> bool:
    return any(keyword in question for keyword in keywords)


def _sum(invoices: Invoices) -> Decimal:
    return sum((inv.total for inv in invoices), Decimal(0))


def _vendor_amounts(invoices: Invoices) -> str:
    return ", ".join(f"{inv.vendor} ({format_currency(inv.total)})" for inv in invoices)


def _unique_vendors(invoices: Invoices) -> list[str]:
    return list(dict.fromkeys(inv.vendor for inv in invoices))


def highest_invoice(invoices: Invoices) -> InvoiceRecord:
    """Invoice with the largest total; the earliest one wins ties."""
    return reduce(lambda best, inv: inv if inv.total > best.total else best, invoices)


def lowest_invoice(invoices: Invoices) -> InvoiceRecord:
    """Invoice with the smallest total; the earliest one wins ties."""
    return reduce(lambda best, inv: inv if inv.total < best.total else best, invoices)


def find_vendor_in_question(question: str, invoices: Invoices) -> str | None:
    """Vendor whose name has a word (longer than 3 chars) that appears in the question."""
    lowered = question.lower()
    for vendor in _unique_vendors(invoices):
        for word in vendor.lower().split():
            if len(word) > 3 and re.search(rf"(?<!\w){re.escape(word)}(?!\w)", lowered):
                return vendor
    return None


class RuleBasedQueryEngine:
    """Answers invoice questions with a first-match-wins intent battery.

    Example:
        >>> engine = RuleBasedQueryEngine(Settings())
        >>> engine.answer("What is the average invoice value?", invoices)
        'Average invoice value: $250.00'
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize engine.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self.intents: list[Intent] = [
            Intent("off_topic", lambda q, _: bool(OFF_TOPIC_PATTERN.search(q)), self._off_topic),
            Intent("on_time", lambda q, _: _has_any(q, "on time", "ontime"), self._on_time),
            Intent(
                "highest",
                lambda q, _: _has_any(q, "highest", "most expensive", "largest", "maximum"),
                self._highest,
            ),
            Intent(
                "lowest",
                lambda q, _: _has_any(q, "lowest", "cheapest", "smallest", "minimum"),
                self._lowest,
            ),
            Intent(
                "overdue",
                lambda q, _: "overdue" in q or re.search(r"\blate\b", q) is not None,
                self._overdue,
            ),
            Intent(
                "total_value",
                lambda q, _: "total" in q and _has_any(q, "value", "amount"),
                self._total_value,
            ),
            Intent(
                "amount_below",
                lambda q, _: BELOW_PATTERN.search(q) is not None and extract_amount(q) is not None,
                self._amount_below,
            ),
            Intent(
                "amount_above",
                lambda q, _: ABOVE_PATTERN.search(q) is not None and extract_amount(q) is not None,
                self._amount_above,
            ),
            Intent(
                "vendors",
                lambda q, _: _has_any(q, "vendor", "company", "supplier"),
                self._vendors,
            ),
            Intent(
                "due_soon",
                lambda q, _: "due" in q and _has_any(q, "next", "upcoming"),
                self._due_soon,
            ),
            Intent("average", lambda q, _: _has_any(q, "average", "mean"), self._average),
            Intent(
                "statistics",
                lambda q, _: _has_any(q, "statistics", "stats", "summary"),
                self._statistics,
            ),
            Intent(
                "farthest_due",
                lambda q, _: "due" in q and _has_any(q, "farthest", "furthest", "latest"),
                self._farthest_due,
            ),
            Intent(
                "named_vendor",
                lambda q, invs: find_vendor_in_question(q, invs) is not None,
                self._named_vendor,
            ),
        ]

    def match_intent(self, question: str, invoices: Invoices) -> Intent | None:
        """First intent whose predicate matches the question."""
        lowered = question.lower()
        return next((i for i in self.intents if i.matches(lowered, invoices)), None)

    def answer(self, question: str, invoices: Invoices) -> str:
        """Answer a question about the invoices.

        Args:
            question: Free-form question
            invoices: Current invoice collection, in collection order

        Returns:
            Answer text; fixed messages for an empty collection or unknown question
        """
        if not invoices:
            return EMPTY_MESSAGE

        intent = self.match_intent(question, invoices)
        if intent is None:
            logger.info("No intent matched, returning fallback message")
            return FALLBACK_MESSAGE

        logger.info(f"Answering with rule intent: {intent.name}")
        return intent.handle(question.lower(), invoices)

    def _off_topic(self, q: str, invoices: Invoices) -> str:
        return OFF_TOPIC_MESSAGE

    def _on_time(self, q: str, invoices: Invoices) -> str:
        today = self.settings.reference_date
        on_time = [inv for inv in invoices if not inv.is_overdue(today)]
        if not on_time:
            return "All invoices are currently overdue."
        vendors = ", ".join(inv.vendor for inv in on_time)
        return f"{len(on_time)} invoices are on time: {vendors}"

    def _highest(self, q: str, invoices: Invoices) -> str:
        highest = highest_invoice(invoices)
        return (
            f"The highest value invoice is from {highest.vendor} with "
            f"{format_currency(highest.total)} (Invoice: {highest.invoice_number})"
        )

    def _lowest(self, q: str, invoices: Invoices) -> str:
        lowest = lowest_invoice(invoices)
        return (
            f"The lowest value invoice is from {lowest.vendor} with "
            f"{format_currency(lowest.total)} (Invoice: {lowest.invoice_number})"
        )

    def _overdue(self, q: str, invoices: Invoices) -> str:
        today = self.settings.reference_date
        overdue = [inv for inv in invoices if inv.is_overdue(today)]
        if not overdue:
            return "No invoices are overdue."
        return (
            f"{len(overdue)} overdue invoices: {_vendor_amounts(overdue)}. "
            f"Total overdue: {format_currency(_sum(overdue))}"
        )

    def _total_value(self, q: str, invoices: Invoices) -> str:
        return (
            f"Total value of all invoices: {format_currency(_sum(invoices))} "
            f"across {len(invoices)} invoices"
        )

    def _amount_below(self, q: str, invoices: Invoices) -> str:
        amount = extract_amount(q) or Decimal(0)
        matching = [inv for inv in invoices if inv.total < amount]
        if not matching:
            return f"No invoices below {format_currency(amount)}."
        return f"Vendors with invoices below {format_currency(amount)}: {_vendor_amounts(matching)}"

    def _amount_above(self, q: str, invoices: Invoices) -> str:
        amount = extract_amount(q) or Decimal(0)
        matching = [inv for inv in invoices if inv.total > amount]
        if not matching:
            return f"No invoices above {format_currency(amount)}."
        return f"Vendors with invoices above {format_currency(amount)}: {_vendor_amounts(matching)}"

    def _vendors(self, q: str, invoices: Invoices) -> str:
        if _has_any(q, "count", "how many"):
            vendors = _unique_vendors(invoices)
            return f"There are {len(vendors)} unique vendors: {', '.join(vendors)}"

        stats: dict[str, list[InvoiceRecord]] = {}
        for inv in invoices:
            stats.setdefault(inv.vendor, []).append(inv)
        breakdown = "; ".join(
            f"{vendor}: {len(vendor_invoices)} invoices, {format_currency(_sum(vendor_invoices))}"
            for vendor, vendor_invoices in stats.items()
        )
        return f"Vendor breakdown: {breakdown}"

    def _due_soon(self, q: str, invoices: Invoices) -> str:
        days = extract_number(q)
        if days is None:
            days = self.settings.due_soon_default_days

        today = self.settings.reference_date
        upcoming = []
        for inv in invoices:
            remaining = inv.days_until_due(today)
            if remaining is not None and 0 <= remaining <= days:
                upcoming.append(inv)
        if not upcoming:
            return f"No invoices are due in the next {days} days."
        return (
            f"{len(upcoming)} invoices due in next {days} days: {_vendor_amounts(upcoming)}. "
            f"Total: {format_currency(_sum(upcoming))}"
        )

    def _average(self, q: str, invoices: Invoices) -> str:
        return f"Average invoice value: {format_currency(_sum(invoices) / len(invoices))}"

    def _statistics(self, q: str, invoices: Invoices) -> str:
        total = _sum(invoices)
        vendors = _unique_vendors(invoices)
        overdue = sum(1 for inv in invoices if inv.is_overdue(self.settings.reference_date))
        lines = [
            "Invoice Statistics:",
            f"Total Invoices: {len(invoices)}",
            f"Total Value: {format_currency(total)}",
            f"Average Value: {format_currency(total / len(invoices))}",
            f"Unique Vendors: {len(vendors)}",
            f"On Time: {len(invoices) - overdue}",
            f"Overdue: {overdue}",
            f"Highest Invoice: {format_currency(highest_invoice(invoices).total)}",
            f"Lowest Invoice: {format_currency(lowest_invoice(invoices).total)}",
            "",
            f"Vendors: {', '.join(vendors)}",
        ]
        return "\n".join(lines)

    def _farthest_due(self, q: str, invoices: Invoices) -> str:
        dated = [inv for inv in invoices if inv.due_date != COMPLETED]
        if not dated:
            return "No future due dates found."
        latest = reduce(lambda best, inv: inv if inv.due_date > best.due_date else best, dated)
        return (
            f"Invoice with farthest due date: {latest.vendor} on {latest.due_date} "
            f"({format_currency(latest.total)}, Invoice: {latest.invoice_number}, "
            f"{latest.days_until_due(self.settings.reference_date)} days until due)"
        )

    def _named_vendor(self, q: str, invoices: Invoices) -> str:
        vendor = find_vendor_in_question(q, invoices)
        vendor_invoices = [inv for inv in invoices if inv.vendor == vendor]
        listing = ", ".join(
            f"{inv.invoice_number} ({format_currency(inv.total)})" for inv in vendor_invoices
        )
        return (
            f"{vendor}: {len(vendor_invoices)} invoices totaling "
            f"{format_currency(_sum(vendor_invoices))}. Invoices: {listing}"
        )

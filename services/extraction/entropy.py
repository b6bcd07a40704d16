"""Sources for the non-deterministic extraction defaults.

Only two extracted fields are allowed to vary between runs on identical text:
the synthetic invoice number and the placeholder total. Both come from an
EntropySource so tests can pin them.
"""

import random
import threading
import time
from abc import ABC, abstractmethod
from decimal import Decimal


class EntropySource(ABC):
    """Supplies fallback values when a field cannot be found in the text."""

    @abstractmethod
    def placeholder_total(self) -> Decimal:
        """Plausible stand-in amount in [100, 1100)."""

    @abstractmethod
    def synthetic_invoice_number(self) -> str:
        """Unique ``INV-<n>`` identifier."""


class SystemEntropy(EntropySource):
    """Random placeholder totals and millisecond-clock invoice numbers.

    Invoice numbers are strictly increasing across all instances in the process,
    so two fallbacks within the same millisecond still differ.
    """

    _lock = threading.Lock()
    _last_value = 0

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def placeholder_total(self) -> Decimal:
        return Decimal(self._rng.randrange(100, 1100))

    def synthetic_invoice_number(self) -> str:
        now_ms = time.time_ns() // 1_000_000
        with SystemEntropy._lock:
            value = max(now_ms, SystemEntropy._last_value + 1)
            SystemEntropy._last_value = value
        return f"INV-{value}"

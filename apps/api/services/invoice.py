"""
Invoice number generation.

Three formats are issued:
- ``INV-YYYYMMDD-####`` for desk payments and the transactional payment flow.
  The 4-digit suffix is random, drawn without replacement per day, so a
  single process never repeats a number (10,000 per day at most).
- ``INV-<epoch millis>`` for member-submitted membership requests, and
  ``PH-<epoch millis>`` for gateway orders. The millisecond value is forced
  strictly increasing within the process.

Numbers already present in the payments table (e.g. from a previous run)
are skipped.
"""

from __future__ import annotations

import random
import threading
import time
from datetime import date
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core.clock import local_today
from models import Payment

SUFFIX_SPACE = 10_000
MAX_DB_COLLISION_RETRIES = 50


class InvoiceNumbersExhausted(RuntimeError):
    pass


class DailyInvoiceSequence:
    """Random, non-repeating 4-digit suffixes per calendar day."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.SystemRandom()
        self._pools: Dict[str, List[int]] = {}
        self._lock = threading.Lock()

    def next(self, day: date) -> str:
        key = day.strftime("%Y%m%d")
        with self._lock:
            pool = self._pools.get(key)
            if pool is None:
                # Days past are no longer needed
                self._pools = {}
                pool = list(range(SUFFIX_SPACE))
                self._rng.shuffle(pool)
                self._pools[key] = pool
            if not pool:
                raise InvoiceNumbersExhausted(f"No invoice numbers left for {key}")
            suffix = pool.pop()
        return f"INV-{key}-{suffix:04d}"


class MillisInvoiceSequence:
    def __init__(self, clock: Callable[[], float] = time.time, prefix: str = "INV"):
        self._clock = clock
        self._prefix = prefix
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            self._last = max(now_ms, self._last + 1)
            return f"{self._prefix}-{self._last}"


_daily = DailyInvoiceSequence()
_millis = MillisInvoiceSequence()
_gateway_orders = MillisInvoiceSequence(prefix="PH")


def _invoice_taken(db: Session, invoice_number: str) -> bool:
    return db.query(Payment.id).filter(Payment.invoice_number == invoice_number).first() is not None


def next_daily_invoice_number(db: Optional[Session] = None, day: Optional[date] = None) -> str:
    day = day or local_today()
    for _ in range(MAX_DB_COLLISION_RETRIES):
        candidate = _daily.next(day)
        if db is None or not _invoice_taken(db, candidate):
            return candidate
    raise InvoiceNumbersExhausted("Could not find a free invoice number")


def next_timestamp_invoice_number(db: Optional[Session] = None) -> str:
    for _ in range(MAX_DB_COLLISION_RETRIES):
        candidate = _millis.next()
        if db is None or not _invoice_taken(db, candidate):
            return candidate
    raise InvoiceNumbersExhausted("Could not find a free invoice number")


def next_gateway_order_id(db: Optional[Session] = None) -> str:
    """Order id sent to the payment gateway; it becomes the invoice number on success."""
    for _ in range(MAX_DB_COLLISION_RETRIES):
        candidate = _gateway_orders.next()
        if db is None or not _invoice_taken(db, candidate):
            return candidate
    raise InvoiceNumbersExhausted("Could not find a free order id")

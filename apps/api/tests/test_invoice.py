import random
import re
from datetime import date, datetime

import pytest

from services.invoice import (
    SUFFIX_SPACE,
    DailyInvoiceSequence,
    InvoiceNumbersExhausted,
    MillisInvoiceSequence,
    next_daily_invoice_number,
)
from models import Payment


def test_daily_sequence_never_repeats_within_a_day():
    seq = DailyInvoiceSequence(random.Random(42))
    day = date(2026, 3, 3)
    issued = {seq.next(day) for _ in range(SUFFIX_SPACE)}
    assert len(issued) == SUFFIX_SPACE
    assert all(re.match(r"^INV-20260303-\d{4}$", n) for n in issued)

    with pytest.raises(InvoiceNumbersExhausted):
        seq.next(day)


def test_daily_sequence_resets_on_new_day():
    seq = DailyInvoiceSequence(random.Random(1))
    seq.next(date(2026, 3, 3))
    assert seq.next(date(2026, 3, 4)).startswith("INV-20260304-")


def test_millis_sequence_is_strictly_increasing_on_a_frozen_clock():
    seq = MillisInvoiceSequence(clock=lambda: 1700000000.0)
    assert [seq.next() for _ in range(3)] == ["INV-1700000000000", "INV-1700000000001", "INV-1700000000002"]


def test_gateway_prefix():
    seq = MillisInvoiceSequence(clock=lambda: 1.5, prefix="PH")
    assert seq.next() == "PH-1500"


def test_numbers_already_in_the_ledger_are_skipped(db, make_member, monkeypatch):
    from services import invoice

    member = make_member()
    taken = "INV-20260303-0001"
    db.add(Payment(member_id=member.id, amount=1, payment_method="cash", invoice_number=taken, created_at=datetime(2026, 3, 3, 9, 0)))
    db.commit()

    candidates = iter(["INV-20260303-0001", "INV-20260303-0002"])
    monkeypatch.setattr(invoice._daily, "next", lambda day: next(candidates))
    assert next_daily_invoice_number(db, date(2026, 3, 3)) == "INV-20260303-0002"

"""Chip / search / date-range filtering and sorting of invoices."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from aba_billing.core.enums import STATUS_SEVERITY, InvoiceStatus, SortKey, StatusChip
from aba_billing.schemas.invoices import Invoice
from aba_billing.utils.validators import align_to, local_day, parse_iso


@dataclass(frozen=True)
class InvoiceQuery:
    chip: StatusChip = StatusChip.ALL
    text: str = ""
    date_from: date | None = None
    date_to: date | None = None
    sort_by: SortKey = SortKey.DATE
    ascending: bool = False


def filter_by_chip(invoices: Sequence[Invoice], chip: StatusChip) -> list[Invoice]:
    if chip is StatusChip.OUTSTANDING:
        return [inv for inv in invoices if inv.status is not InvoiceStatus.PAID]
    if chip is StatusChip.OVERDUE:
        return [inv for inv in invoices if inv.status is InvoiceStatus.OVERDUE]
    if chip is StatusChip.PAID:
        return [inv for inv in invoices if inv.status is InvoiceStatus.PAID]
    if chip is StatusChip.PARTIALLY:
        # No partial-payment state exists on the backend.
        return [inv for inv in invoices if inv.status is InvoiceStatus.PENDING]
    return list(invoices)


def filter_by_text(invoices: Sequence[Invoice], text: str) -> list[Invoice]:
    needle = text.strip().lower()
    if not needle:
        return list(invoices)
    return [
        inv
        for inv in invoices
        if needle in str(inv.id).lower()
        or needle in (inv.number or "").lower()
        or needle in inv.description.lower()
    ]


def filter_by_date_range(
    invoices: Sequence[Invoice],
    date_from: date | None,
    date_to: date | None,
    now: datetime,
) -> list[Invoice]:
    """Inclusive bounds on the issue date's calendar day."""
    if date_from is None and date_to is None:
        return list(invoices)
    kept = []
    for inv in invoices:
        day = local_day(inv.date, now)
        if day is None:
            continue
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        kept.append(inv)
    return kept


def _sort_key(sort_by: SortKey, now: datetime):
    if sort_by is SortKey.AMOUNT:
        return lambda inv: inv.amount
    if sort_by is SortKey.STATUS:
        # Descending puts the most urgent status first.
        return lambda inv: STATUS_SEVERITY[inv.status]
    return lambda inv: align_to(parse_iso(inv.date) or datetime.min, now)


def sort_invoices(
    invoices: Sequence[Invoice],
    sort_by: SortKey,
    ascending: bool,
    now: datetime,
) -> list[Invoice]:
    return sorted(invoices, key=_sort_key(sort_by, now), reverse=not ascending)


def apply_query(invoices: Sequence[Invoice], query: InvoiceQuery, now: datetime) -> list[Invoice]:
    """Run the fixed pipeline: chip, free text, date range, then sort."""
    data = filter_by_chip(invoices, query.chip)
    data = filter_by_text(data, query.text)
    data = filter_by_date_range(data, query.date_from, query.date_to, now)
    return sort_invoices(data, query.sort_by, query.ascending, now)

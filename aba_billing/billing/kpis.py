"""Summary figures over the visible invoice set."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from aba_billing.core.enums import InvoiceStatus
from aba_billing.schemas.invoices import Invoice
from aba_billing.utils.validators import align_to, local_day, parse_iso

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class BillingKPIs:
    outstanding_total: Decimal
    outstanding_count: int
    overdue: tuple[Invoice, ...]
    overdue_total: Decimal
    paid_this_month: Decimal
    paid_count: int
    next_due: Invoice | None
    most_overdue: Invoice | None
    most_overdue_days: int

    @property
    def needs_attention(self) -> bool:
        return self.most_overdue is not None


def due_moment(invoice: Invoice, now: datetime) -> datetime:
    """Due date, or issue date when there is none; unparseable dates sort last."""
    parsed = parse_iso(invoice.due_or_issue_date)
    if parsed is None:
        return align_to(datetime.max, now)
    return align_to(parsed, now)


def days_overdue(invoice: Invoice, now: datetime) -> int:
    elapsed = now - due_moment(invoice, now)
    return max(0, math.ceil(elapsed / ONE_DAY))


def _total(invoices: Sequence[Invoice]) -> Decimal:
    return sum((inv.amount for inv in invoices), Decimal("0"))


def _earliest(invoices: Sequence[Invoice], now: datetime) -> Invoice | None:
    if not invoices:
        return None
    return min(invoices, key=lambda inv: due_moment(inv, now))


def compute_kpis(invoices: Sequence[Invoice], now: datetime) -> BillingKPIs:
    outstanding = [inv for inv in invoices if inv.status is not InvoiceStatus.PAID]
    overdue = [inv for inv in invoices if inv.status is InvoiceStatus.OVERDUE]
    paid = [inv for inv in invoices if inv.status is InvoiceStatus.PAID]

    this_month = (now.year, now.month)
    paid_this_month = []
    for inv in paid:
        day = local_day(inv.date, now)
        if day is not None and (day.year, day.month) == this_month:
            paid_this_month.append(inv)

    most_overdue = _earliest(overdue, now)
    return BillingKPIs(
        outstanding_total=_total(outstanding),
        outstanding_count=len(outstanding),
        overdue=tuple(overdue),
        overdue_total=_total(overdue),
        paid_this_month=_total(paid_this_month),
        paid_count=len(paid),
        next_due=_earliest(outstanding, now),
        most_overdue=most_overdue,
        most_overdue_days=days_overdue(most_overdue, now) if most_overdue else 0,
    )

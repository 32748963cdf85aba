"""Translation between backend invoice statuses and UI statuses."""

from __future__ import annotations

from datetime import date, datetime

from aba_billing.core.enums import ApiInvoiceStatus, InvoiceStatus
from aba_billing.schemas.invoices import Invoice, InvoiceDTO
from aba_billing.utils.validators import align_to, is_date_only, local_day, parse_iso


def _raw_status(api_status: ApiInvoiceStatus | str | None) -> str:
    if isinstance(api_status, ApiInvoiceStatus):
        return api_status.value
    return str(api_status or "").strip().lower()


def is_past_due(due_date: str | date | datetime | None, now: datetime) -> bool:
    """True when the due date lies strictly before `now`.

    Date-only values compare by calendar day, so an invoice due today is not
    past due yet.
    """
    if due_date is None:
        return False
    if is_date_only(due_date):
        day = local_day(due_date, now)
        return day is not None and day < now.date()
    parsed = parse_iso(due_date)
    if parsed is None:
        return False
    return align_to(parsed, now) < now


def api_to_ui_status(
    api_status: ApiInvoiceStatus | str | None,
    due_date: str | date | datetime | None,
    now: datetime,
) -> InvoiceStatus:
    """Widen the backend status to the UI status. Never raises."""
    raw = _raw_status(api_status)
    if raw == ApiInvoiceStatus.PAID.value:
        return InvoiceStatus.PAID
    if raw == ApiInvoiceStatus.CANCELLED.value:
        return InvoiceStatus.FAILED
    if raw == ApiInvoiceStatus.PENDING.value and is_past_due(due_date, now):
        return InvoiceStatus.OVERDUE
    return InvoiceStatus.PENDING


def ui_to_api_status(ui_status: InvoiceStatus | str) -> ApiInvoiceStatus:
    """Narrow a UI status for writes; Overdue collapses to pending."""
    status = InvoiceStatus(ui_status)
    if status is InvoiceStatus.PAID:
        return ApiInvoiceStatus.PAID
    if status is InvoiceStatus.FAILED:
        return ApiInvoiceStatus.CANCELLED
    return ApiInvoiceStatus.PENDING


def to_invoice(dto: InvoiceDTO, now: datetime, currency: str) -> Invoice:
    """Map a server invoice to the UI model using the freshest status and due date."""
    return Invoice(
        id=dto.id,
        number=dto.number,
        date=dto.date,
        due_date=dto.due_date or None,
        amount=dto.total,
        currency=currency,
        status=api_to_ui_status(dto.status, dto.due_date or None, now),
        description=dto.description or f"Consulta #{dto.consultation_id}",
        consultation_id=dto.consultation_id,
        customer_id=dto.customer_id,
        proof_url=dto.proof_url,
        proof_uploaded_at=dto.proof_uploaded_at,
        paid_at=dto.paid_at,
        ownership=dto.ownership,
    )

from aba_billing.schemas.consultations import ConsultationLite
from aba_billing.schemas.invoices import (
    Invoice,
    InvoiceCreateRequest,
    InvoiceDTO,
    InvoiceStatusUpdateRequest,
    InvoiceUpdateRequest,
    Owned,
    Ownership,
    Unowned,
)

__all__ = [
    "ConsultationLite",
    "Invoice",
    "InvoiceCreateRequest",
    "InvoiceDTO",
    "InvoiceStatusUpdateRequest",
    "InvoiceUpdateRequest",
    "Owned",
    "Ownership",
    "Unowned",
]

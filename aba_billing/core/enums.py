"""Enums for the billing client.

Backend statuses are lowercase (`pending`, `paid`, `cancelled`); the UI
vocabulary is title case and adds `Overdue`, which is always computed.
"""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    PAI = "PAI"
    PSICOLOGO = "PSICOLOGO"
    USER = "USER"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole":
        """Upper-case a raw role string; unknown or missing roles become USER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return cls.USER

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


ROLE_LABELS = {
    UserRole.ADMIN: "Administrador",
    UserRole.PAI: "Pai/Encarregado",
    UserRole.PSICOLOGO: "Psicólogo",
    UserRole.USER: "Utilizador",
}


class ApiInvoiceStatus(str, enum.Enum):
    """Invoice status as stored by the backend."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class InvoiceStatus(str, enum.Enum):
    """Invoice status as shown to users."""

    PAID = "Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"
    FAILED = "Failed"


# Higher is more urgent.
STATUS_SEVERITY = {
    InvoiceStatus.OVERDUE: 3,
    InvoiceStatus.FAILED: 2,
    InvoiceStatus.PENDING: 1,
    InvoiceStatus.PAID: 0,
}


class StatusChip(str, enum.Enum):
    ALL = "All"
    OUTSTANDING = "Outstanding"
    OVERDUE = "Overdue"
    PAID = "Paid"
    PARTIALLY = "Partially"

    @property
    def label(self) -> str:
        return CHIP_LABELS[self]


CHIP_LABELS = {
    StatusChip.ALL: "Todos",
    StatusChip.OUTSTANDING: "Em Aberto",
    StatusChip.OVERDUE: "Vencidas",
    StatusChip.PAID: "Pagas",
    StatusChip.PARTIALLY: "Parcial",
}


class SortKey(str, enum.Enum):
    DATE = "date"
    AMOUNT = "amount"
    STATUS = "status"


class InvoiceAction(str, enum.Enum):
    """Row actions a viewer may trigger on an invoice."""

    DOWNLOAD = "download"
    UPLOAD_PROOF = "upload_proof"
    MARK_PAID = "mark_paid"
    MARK_PENDING = "mark_pending"


class Currency(str, enum.Enum):
    """Deployment currencies; a single one applies to every invoice."""

    MZN = "MZN"
    USD = "USD"
    EUR = "EUR"

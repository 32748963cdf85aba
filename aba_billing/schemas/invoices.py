"""Invoice wire schemas and the UI-side invoice model."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aba_billing.core.enums import ApiInvoiceStatus, InvoiceStatus
from aba_billing.utils.validators import to_decimal

OWNERSHIP_FIELDS = ("owner_user_id", "parent_id", "user_id")


@dataclass(frozen=True)
class Owned:
    """Invoice carries at least one guardian ownership id."""

    owner_ids: frozenset[int]

    def belongs_to(self, user_id: int) -> bool:
        return user_id in self.owner_ids


@dataclass(frozen=True)
class Unowned:
    """Backend sent no ownership metadata for this invoice."""


Ownership = Union[Owned, Unowned]


def _ownership_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class InvoiceDTO(BaseModel):
    """Invoice as returned by `GET /invoices` and every mutation endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    number: str | None = None
    date: str
    due_date: str | None = Field(default=None, alias="dueDate")
    total: Decimal = Decimal("0")
    status: str = ApiInvoiceStatus.PENDING.value
    consultation_id: int | None = Field(default=None, alias="consultationId")
    customer_id: int | None = Field(default=None, alias="customerId")
    description: str | None = None
    proof_url: str | None = Field(default=None, alias="proofUrl")
    proof_uploaded_at: str | None = Field(default=None, alias="proofUploadedAt")
    paid_at: str | None = Field(default=None, alias="paidAt")
    owner_user_id: int | None = Field(default=None, alias="ownerUserId")
    parent_id: int | None = Field(default=None, alias="parentId")
    user_id: int | None = Field(default=None, alias="userId")

    @field_validator("total", mode="before")
    @classmethod
    def normalize_total(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @field_validator("owner_user_id", "parent_id", "user_id", mode="before")
    @classmethod
    def normalize_owner(cls, value: Any) -> int | None:
        return _ownership_id(value)

    @property
    def ownership(self) -> Ownership:
        ids = frozenset(getattr(self, name) for name in OWNERSHIP_FIELDS if getattr(self, name) is not None)
        return Owned(ids) if ids else Unowned()


class InvoiceCreateRequest(BaseModel):
    """Body of `POST /invoices/:consultationId/invoices`."""

    model_config = ConfigDict(populate_by_name=True)

    number: str = Field(min_length=1, max_length=64)
    date: str
    total: Decimal = Field(gt=0)
    status: ApiInvoiceStatus = ApiInvoiceStatus.PENDING
    customer_id: int | None = Field(default=None, alias="customerId")
    due_date: str | None = Field(default=None, alias="dueDate")
    description: str | None = Field(default=None, max_length=2000)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload["total"] = float(self.total)
        return payload


class InvoiceStatusUpdateRequest(BaseModel):
    status: ApiInvoiceStatus


class InvoiceUpdateRequest(BaseModel):
    """Partial update body for `PATCH /invoices/:id`."""

    model_config = ConfigDict(populate_by_name=True)

    number: str | None = None
    date: str | None = None
    total: Decimal | None = None
    status: ApiInvoiceStatus | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.total is not None:
            payload["total"] = float(self.total)
        return payload


@dataclass(frozen=True)
class Invoice:
    """Invoice as presented to the viewer.

    `status` is derived from the backend status and due date at mapping time
    and is never sent back as-is.
    """

    id: int
    date: str
    amount: Decimal
    currency: str
    status: InvoiceStatus
    description: str
    number: str | None = None
    due_date: str | None = None
    consultation_id: int | None = None
    customer_id: int | None = None
    proof_url: str | None = None
    proof_uploaded_at: str | None = None
    paid_at: str | None = None
    ownership: Ownership = field(default_factory=Unowned)

    @property
    def label(self) -> str:
        return f"INV-{self.number or self.id}"

    @property
    def due_or_issue_date(self) -> str:
        return self.due_date or self.date

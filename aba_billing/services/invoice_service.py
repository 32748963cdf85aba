"""Invoice service wrapping the backend `/invoices` endpoints."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from aba_billing.core.enums import ApiInvoiceStatus
from aba_billing.core.exceptions import ServiceError
from aba_billing.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceDTO,
    InvoiceStatusUpdateRequest,
    InvoiceUpdateRequest,
)
from aba_billing.services.base_client import BaseClient

BASE = "/invoices"
PROOF_FIELD = "proof"
PROOF_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


def _to_dto(payload: Any) -> InvoiceDTO:
    try:
        return InvoiceDTO.model_validate(payload)
    except PydanticValidationError as exc:
        raise ServiceError(f"Invalid invoice payload: {exc.error_count()} error(s)") from exc


class InvoiceService(BaseClient):
    """Typed wrappers for invoice reads and mutations.

    There is deliberately no delete call: invoices are never removed from the client.
    """

    def list_invoices(self) -> list[InvoiceDTO]:
        rows = self.request_json("GET", BASE)
        if not isinstance(rows, list):
            raise ServiceError("GET /invoices did not return a list")
        return [_to_dto(row) for row in rows]

    def get_invoice(self, invoice_id: int) -> InvoiceDTO:
        return _to_dto(self.request_json("GET", f"{BASE}/{invoice_id}"))

    def update_invoice(self, invoice_id: int, payload: InvoiceUpdateRequest) -> InvoiceDTO:
        return _to_dto(self.request_json("PATCH", f"{BASE}/{invoice_id}", json=payload.to_payload()))

    def update_invoice_status(self, invoice_id: int, status: ApiInvoiceStatus) -> InvoiceDTO:
        body = InvoiceStatusUpdateRequest(status=status).model_dump(mode="json")
        return _to_dto(self.request_json("PATCH", f"{BASE}/{invoice_id}/status", json=body))

    def create_invoice_for_consultation(self, consultation_id: int, payload: InvoiceCreateRequest) -> InvoiceDTO:
        # consultationId travels in the URL only; the backend merges it.
        return _to_dto(
            self.request_json("POST", f"{BASE}/{consultation_id}/invoices", json=payload.to_payload())
        )

    def upload_payment_proof(self, invoice_id: int, file_path: str | Path) -> InvoiceDTO:
        path = Path(file_path)
        content_type = PROOF_CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
        with path.open("rb") as handle:
            files = {PROOF_FIELD: (path.name, handle, content_type)}
            return _to_dto(self.request_json("POST", f"{BASE}/{invoice_id}/proof", files=files))

    def download_invoice_pdf(self, invoice_id: int) -> bytes:
        response = self.request("GET", f"{BASE}/{invoice_id}/download")
        return response.content

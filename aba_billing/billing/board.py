"""In-memory billing board: the invoice collection and the actions on it.

The board owns the single invoice list and the set of invoices with an
action in flight. Mutations are never applied optimistically: the server
response is re-mapped through the status mapper and replaces the matching
invoice by id. Backend failures are caught here, reported through `notify`
and leave the collection untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from aba_billing.auth import rbac
from aba_billing.auth.session import SessionContext
from aba_billing.billing.kpis import BillingKPIs, compute_kpis
from aba_billing.billing.pipeline import InvoiceQuery, apply_query
from aba_billing.billing.status import to_invoice, ui_to_api_status
from aba_billing.billing.visibility import FAIL_OPEN, visible_invoices
from aba_billing.core.enums import ApiInvoiceStatus, InvoiceAction, InvoiceStatus, UserRole
from aba_billing.core.exceptions import NotFoundError, ServiceError
from aba_billing.schemas.consultations import ConsultationLite
from aba_billing.schemas.invoices import Invoice, InvoiceCreateRequest, InvoiceDTO
from aba_billing.services.consultation_service import ConsultationService
from aba_billing.services.export_service import export_invoices_csv
from aba_billing.services.invoice_service import InvoiceService
from aba_billing.utils.ids import new_invoice_number
from aba_billing.utils.validators import sanitize_text, to_decimal, to_utc_iso

logger = logging.getLogger(__name__)

LOAD_FAILED = "Erro ao carregar faturas"
STATUS_FAILED = "Não foi possível atualizar o estado da fatura."
PROOF_FAILED = "Falha ao anexar comprovativo."
CREATE_FAILED = "Falha ao criar fatura."
CREATE_SUCCEEDED = "Fatura criada com sucesso!"
DOWNLOAD_FAILED = "Falha ao baixar a fatura."
SELECT_CONSULTATION = "Seleciona a consulta."
AMOUNT_REQUIRED = "Indica o valor."
ALREADY_WORKING = "A fatura já está a ser processada."
CONSULTATIONS_FAILED = "Erro ao carregar consultas"
DEFAULT_PSYCHOLOGIST = "Psicólogo"

Notifier = Callable[[str], None]
Clock = Callable[[], datetime]


def _log_notice(message: str) -> None:
    logger.warning("billing.notice", extra={"event": "billing.notice", "error": message})


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    invoice: Invoice | None = None
    message: str | None = None


def default_description(consultation: ConsultationLite) -> str:
    psychologist = consultation.psychologist_name or DEFAULT_PSYCHOLOGIST
    return f"Consulta #{consultation.id} • {consultation.child_name} com {psychologist}"


class BillingBoard:
    def __init__(
        self,
        session: SessionContext,
        invoice_service: InvoiceService,
        consultation_service: ConsultationService | None = None,
        clock: Clock = datetime.now,
        notify: Notifier | None = None,
        currency: str = "MZN",
        ownership_fallback: str = FAIL_OPEN,
    ) -> None:
        self.session = session
        self.invoice_service = invoice_service
        self.consultation_service = consultation_service
        self.clock = clock
        self.notify = notify or _log_notice
        self.currency = currency
        self.ownership_fallback = ownership_fallback
        self.creating = False
        self._invoices: list[Invoice] = []
        self._working: set[int] = set()

    # ------------------------------------------------------------------ state

    @property
    def invoices(self) -> tuple[Invoice, ...]:
        return tuple(self._invoices)

    @property
    def working_ids(self) -> frozenset[int]:
        return frozenset(self._working)

    def is_working(self, invoice_id: int) -> bool:
        return invoice_id in self._working

    def find(self, invoice_id: int) -> Invoice:
        for inv in self._invoices:
            if inv.id == invoice_id:
                return inv
        raise NotFoundError(f"Invoice {invoice_id} is not loaded.")

    def find_visible(self, invoice_id: int) -> Invoice:
        """Resolve an action target; invoices hidden from the viewer do not exist for them."""
        for inv in self.visible:
            if inv.id == invoice_id:
                return inv
        raise NotFoundError(f"Invoice {invoice_id} is not loaded.")

    def _log_extra(self, event: str, **fields) -> dict:
        return {"event": event, "user_id": self.session.user_id, "role": self.session.role.value, **fields}

    def _map(self, dto: InvoiceDTO) -> Invoice:
        return to_invoice(dto, now=self.clock(), currency=self.currency)

    def _replace(self, invoice: Invoice) -> None:
        self._invoices = [invoice if inv.id == invoice.id else inv for inv in self._invoices]

    # ------------------------------------------------------------- derivations

    @property
    def visible(self) -> list[Invoice]:
        return visible_invoices(self._invoices, self.session, fallback=self.ownership_fallback)

    def kpis(self) -> BillingKPIs:
        return compute_kpis(self.visible, now=self.clock())

    def filtered(self, query: InvoiceQuery | None = None) -> list[Invoice]:
        return apply_query(self.visible, query or InvoiceQuery(), now=self.clock())

    def available_actions(self, invoice: Invoice) -> set[InvoiceAction]:
        actions = {InvoiceAction.DOWNLOAD}
        role = self.session.role
        if role is UserRole.PAI and invoice.status is not InvoiceStatus.PAID:
            actions.add(InvoiceAction.UPLOAD_PROOF)
        if role is UserRole.ADMIN:
            if invoice.status is not InvoiceStatus.PAID:
                actions.add(InvoiceAction.MARK_PAID)
            if invoice.status is not InvoiceStatus.PENDING:
                actions.add(InvoiceAction.MARK_PENDING)
        return actions

    # ------------------------------------------------------------------- reads

    def load(self) -> bool:
        """Replace the collection with the server's list; keep it on failure."""
        rbac.require_scopes(self.session.role, [rbac.INVOICES_READ])
        try:
            rows = self.invoice_service.list_invoices()
        except ServiceError as exc:
            logger.error("invoices.load.failed", extra=self._log_extra("invoices.load.failed", error=str(exc)))
            self.notify(LOAD_FAILED)
            return False

        now = self.clock()
        self._invoices = [to_invoice(row, now=now, currency=self.currency) for row in rows]
        logger.info("invoices.loaded", extra=self._log_extra("invoices.loaded", count=len(self._invoices)))
        return True

    def search_consultations(self, term: str = "", limit: int = 20) -> list[ConsultationLite]:
        rbac.require_scopes(self.session.role, [rbac.CONSULTATIONS_READ])
        if self.consultation_service is None:
            return []
        try:
            return self.consultation_service.list_consultations_lite(q=term.strip(), limit=limit)
        except ServiceError as exc:
            logger.error(
                "consultations.search.failed",
                extra=self._log_extra("consultations.search.failed", error=str(exc)),
            )
            self.notify(CONSULTATIONS_FAILED)
            return []

    # --------------------------------------------------------------- mutations

    def _run_mutation(
        self,
        invoice_id: int,
        call: Callable[[], InvoiceDTO],
        failure_message: str,
        event: str,
    ) -> ActionResult:
        if invoice_id in self._working:
            return ActionResult(ok=False, message=ALREADY_WORKING)

        self._working.add(invoice_id)
        try:
            dto = call()
        except (ServiceError, OSError) as exc:
            # OSError covers a proof file that cannot be read.
            detail = exc.detail if isinstance(exc, ServiceError) else None
            message = detail or failure_message
            logger.error(
                f"{event}.failed",
                extra=self._log_extra(f"{event}.failed", invoice_id=invoice_id, error=str(exc)),
            )
            self.notify(message)
            return ActionResult(ok=False, message=message)
        finally:
            self._working.discard(invoice_id)

        invoice = self._map(dto)
        self._replace(invoice)
        logger.info(event, extra=self._log_extra(event, invoice_id=invoice.id, status=invoice.status.value))
        return ActionResult(ok=True, invoice=invoice)

    def set_status(self, invoice_id: int, ui_status: InvoiceStatus | str) -> ActionResult:
        rbac.require_scopes(self.session.role, [rbac.INVOICES_STATUS_UPDATE])
        self.find_visible(invoice_id)
        api_status = ui_to_api_status(ui_status)
        return self._run_mutation(
            invoice_id,
            lambda: self.invoice_service.update_invoice_status(invoice_id, api_status),
            STATUS_FAILED,
            "invoice.status.updated",
        )

    def upload_proof(self, invoice_id: int, file_path: str | Path) -> ActionResult:
        rbac.require_scopes(self.session.role, [rbac.INVOICES_PROOF_UPLOAD])
        self.find_visible(invoice_id)
        return self._run_mutation(
            invoice_id,
            lambda: self.invoice_service.upload_payment_proof(invoice_id, file_path),
            PROOF_FAILED,
            "invoice.proof.uploaded",
        )

    def create_invoice(
        self,
        consultation: ConsultationLite | None,
        amount: str | int | float | Decimal | None,
        description: str | None = None,
        customer_id: int | None = None,
    ) -> ActionResult:
        rbac.require_scopes(self.session.role, [rbac.INVOICES_CREATE])
        if consultation is None:
            self.notify(SELECT_CONSULTATION)
            return ActionResult(ok=False, message=SELECT_CONSULTATION)
        total = to_decimal(amount, default=None)
        if total is None or total <= 0:
            self.notify(AMOUNT_REQUIRED)
            return ActionResult(ok=False, message=AMOUNT_REQUIRED)

        now = self.clock()
        request = InvoiceCreateRequest(
            number=new_invoice_number(consultation.id, now),
            date=to_utc_iso(now),
            total=total,
            status=ApiInvoiceStatus.PENDING,
            customer_id=customer_id,
            description=sanitize_text(description) or default_description(consultation),
        )

        self.creating = True
        try:
            dto = self.invoice_service.create_invoice_for_consultation(consultation.id, request)
        except ServiceError as exc:
            message = exc.detail or CREATE_FAILED
            logger.error(
                "invoice.create.failed",
                extra=self._log_extra("invoice.create.failed", consultation_id=consultation.id, error=str(exc)),
            )
            self.notify(message)
            return ActionResult(ok=False, message=message)
        finally:
            self.creating = False

        invoice = self._map(dto)
        self._invoices = [invoice, *self._invoices]
        logger.info(
            "invoice.created",
            extra=self._log_extra("invoice.created", invoice_id=invoice.id, consultation_id=consultation.id),
        )
        self.notify(CREATE_SUCCEEDED)
        return ActionResult(ok=True, invoice=invoice, message=CREATE_SUCCEEDED)

    # ----------------------------------------------------------------- outputs

    def download(self, invoice: Invoice, directory: str | Path) -> Path | None:
        """Save the invoice PDF as `invoice_<number-or-id>.pdf`."""
        rbac.require_scopes(self.session.role, [rbac.INVOICES_DOWNLOAD])
        invoice = self.find_visible(invoice.id)
        try:
            content = self.invoice_service.download_invoice_pdf(invoice.id)
        except ServiceError as exc:
            logger.error(
                "invoice.download.failed",
                extra=self._log_extra("invoice.download.failed", invoice_id=invoice.id, error=str(exc)),
            )
            self.notify(exc.detail or DOWNLOAD_FAILED)
            return None

        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"invoice_{invoice.number or invoice.id}.pdf"
        path.write_bytes(content)
        logger.info("invoice.downloaded", extra=self._log_extra("invoice.downloaded", invoice_id=invoice.id, path=str(path)))
        return path

    def export_csv(self, directory: str | Path, query: InvoiceQuery | None = None) -> Path:
        """Export the filtered, visible invoices exactly as listed."""
        rows: Sequence[Invoice] = self.filtered(query)
        return export_invoices_csv(rows, directory, today=self.clock().date())

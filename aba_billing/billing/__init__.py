from aba_billing.billing.board import ActionResult, BillingBoard
from aba_billing.billing.kpis import BillingKPIs, compute_kpis
from aba_billing.billing.pipeline import InvoiceQuery, apply_query
from aba_billing.billing.status import api_to_ui_status, to_invoice, ui_to_api_status
from aba_billing.billing.visibility import visible_invoices

__all__ = [
    "ActionResult",
    "BillingBoard",
    "BillingKPIs",
    "InvoiceQuery",
    "api_to_ui_status",
    "apply_query",
    "compute_kpis",
    "to_invoice",
    "ui_to_api_status",
    "visible_invoices",
]

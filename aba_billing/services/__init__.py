from aba_billing.services.auth_service import AuthService
from aba_billing.services.consultation_service import ConsultationService
from aba_billing.services.invoice_service import InvoiceService

__all__ = ["AuthService", "ConsultationService", "InvoiceService"]

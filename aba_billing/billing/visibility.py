"""Role-based restriction of the invoice collection."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from aba_billing.auth.session import SessionContext
from aba_billing.core.enums import UserRole
from aba_billing.schemas.invoices import Invoice, Owned

logger = logging.getLogger(__name__)

FAIL_OPEN = "open"
FAIL_CLOSED = "closed"


def visible_invoices(
    invoices: Sequence[Invoice],
    session: SessionContext,
    fallback: str = FAIL_OPEN,
) -> list[Invoice]:
    """Return the invoices the viewer may see.

    Only guardians are restricted. When no invoice carries ownership ids the
    backend is assumed to have scoped the list already (`open`), unless the
    deployment asks for `closed`, in which case nothing is shown.
    """
    if session.role is not UserRole.PAI or session.user_id is None:
        return list(invoices)

    if not any(isinstance(inv.ownership, Owned) for inv in invoices):
        if fallback == FAIL_CLOSED:
            logger.warning(
                "invoices.visibility.no_ownership",
                extra={"event": "invoices.visibility.no_ownership", "user_id": session.user_id},
            )
            return []
        return list(invoices)

    uid = int(session.user_id)
    return [inv for inv in invoices if isinstance(inv.ownership, Owned) and inv.ownership.belongs_to(uid)]

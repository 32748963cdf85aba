"""Role-based authorization helpers."""

from __future__ import annotations

from aba_billing.core.enums import UserRole
from aba_billing.core.exceptions import AuthorizationError

INVOICES_READ = "invoices.read"
INVOICES_DOWNLOAD = "invoices.download"
INVOICES_CREATE = "invoices.create"
INVOICES_STATUS_UPDATE = "invoices.status.update"
INVOICES_PROOF_UPLOAD = "invoices.proof.upload"
CONSULTATIONS_READ = "consultations.read"

# Scope strings are kept explicit for action-level declarations.
ROLE_SCOPES: dict[UserRole, set[str]] = {
    UserRole.ADMIN: {
        "*",
    },
    UserRole.PAI: {
        INVOICES_READ,
        INVOICES_DOWNLOAD,
        INVOICES_PROOF_UPLOAD,
    },
    UserRole.PSICOLOGO: {
        INVOICES_READ,
        INVOICES_DOWNLOAD,
    },
    UserRole.USER: {
        INVOICES_READ,
        INVOICES_DOWNLOAD,
    },
}


def get_scopes_for_role(role: UserRole | str) -> set[str]:
    """Return scopes granted to a role."""
    return ROLE_SCOPES.get(UserRole.parse(role), set())


def has_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
    """Check if role includes every required scope."""
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required scopes."""
    if has_scopes(role=role, required_scopes=required_scopes):
        return
    missing = sorted(set(required_scopes) - get_scopes_for_role(role))
    raise AuthorizationError(f"Missing required scopes: {', '.join(missing)}")

"""Explicit session context passed to clients and the billing board."""

from __future__ import annotations

from dataclasses import dataclass

from aba_billing.core.enums import UserRole
from aba_billing.core.exceptions import AuthenticationError
from aba_billing.schemas.auth import UserProfile

NOT_AUTHENTICATED = "Usuário não autenticado"


@dataclass(frozen=True)
class SessionContext:
    role: UserRole = UserRole.USER
    user_id: int | None = None
    token: str | None = None
    name: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def require_token(self) -> str:
        """Return the bearer token or fail before any request is built."""
        if not self.token:
            raise AuthenticationError(NOT_AUTHENTICATED)
        return self.token

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}


def from_login_payload(user: UserProfile | None, token: str | None) -> SessionContext:
    """Build a session from the stored login response."""
    if user is None:
        return SessionContext(token=token or None)
    return SessionContext(
        role=UserRole.parse(user.role),
        user_id=int(user.id),
        token=token or None,
        name=user.name,
        email=user.email,
    )

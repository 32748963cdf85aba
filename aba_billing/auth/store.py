"""Persisted client auth state (user + token) backed by a JSON file."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from aba_billing.auth.session import SessionContext, from_login_payload
from aba_billing.schemas.auth import AuthState, UserProfile

logger = logging.getLogger(__name__)


class AuthStore:
    """File-backed store mirroring the web client's persisted auth storage."""

    def __init__(self, path: str | Path, fallback_token: str | None = None) -> None:
        self.path = Path(path)
        self.fallback_token = fallback_token

    def load(self) -> AuthState:
        if not self.path.exists():
            return AuthState()
        try:
            return AuthState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError):
            logger.warning(
                "auth.store.unreadable",
                extra={"event": "auth.store.unreadable", "path": str(self.path)},
            )
            return AuthState()

    def set_user(self, user: UserProfile, token: str) -> AuthState:
        state = AuthState(user=user, token=token)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        logger.info("auth.store.saved", extra={"event": "auth.store.saved", "user_id": user.id})
        return state

    def logout(self) -> None:
        if self.path.exists():
            self.path.unlink()
        logger.info("auth.store.cleared", extra={"event": "auth.store.cleared"})

    def session(self) -> SessionContext:
        state = self.load()
        return from_login_payload(state.user, state.token or self.fallback_token)

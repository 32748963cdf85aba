"""Login against the backend `/auth/login` endpoint."""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError as PydanticValidationError

from aba_billing.core.config import get_config
from aba_billing.core.exceptions import AuthenticationError, ServiceError
from aba_billing.schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)


class AuthService:
    """Unauthenticated client; the only call made without a bearer token."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ) -> None:
        cfg = get_config() if base_url is None or timeout is None else None
        self.base_url = (base_url or cfg.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg.API_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def login(self, email: str, password: str) -> LoginResponse:
        body = LoginRequest(email=email, password=password).model_dump()
        try:
            response = self.http.post(f"{self.base_url}/auth/login", json=body, timeout=self.timeout)
            response.raise_for_status()
            result = LoginResponse.model_validate(response.json())
        except requests.exceptions.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in {400, 401, 403}:
                raise AuthenticationError("Credenciais inválidas.") from exc
            raise ServiceError(f"POST /auth/login failed with status {status_code}", status_code) from exc
        except requests.exceptions.RequestException as exc:
            raise ServiceError(f"POST /auth/login failed: {exc}") from exc
        except (ValueError, PydanticValidationError) as exc:
            raise ServiceError("POST /auth/login returned an invalid body") from exc

        logger.info("auth.login.succeeded", extra={"event": "auth.login.succeeded", "user_id": result.user.id})
        return result

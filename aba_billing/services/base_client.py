"""Shared HTTP client base for the clinic REST backend."""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError as PydanticValidationError

from aba_billing.auth.session import SessionContext
from aba_billing.core.config import get_config
from aba_billing.core.exceptions import ServiceError
from aba_billing.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)


def _server_detail(response: requests.Response | None) -> str | None:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    try:
        return ErrorEnvelope.model_validate(body).text
    except PydanticValidationError:
        return None


class BaseClient:
    """Base class for services that call the backend with the viewer's token."""

    def __init__(
        self,
        session: SessionContext,
        base_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ) -> None:
        cfg = get_config() if base_url is None or timeout is None else None
        self.session = session
        self.base_url = (base_url or cfg.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg.API_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send an authenticated request.

        The token check happens before anything is sent; transport and HTTP
        failures surface as ServiceError carrying the server's message.
        """
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self.session.auth_headers())
        try:
            response = self.http.request(method, self._url(path), headers=headers, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            detail = _server_detail(exc.response)
            logger.warning(
                "api.request.failed",
                extra={"event": "api.request.failed", "path": path, "status": status_code, "error": detail or str(exc)},
            )
            raise ServiceError(f"{method} {path} failed with status {status_code}", status_code, detail) from exc
        except requests.exceptions.RequestException as exc:
            logger.warning(
                "api.request.unreachable",
                extra={"event": "api.request.unreachable", "path": path, "error": str(exc)},
            )
            raise ServiceError(f"{method} {path} failed: {exc}") from exc
        return response

    def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self.request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError(f"{method} {path} returned invalid JSON", response.status_code) from exc

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "BaseClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

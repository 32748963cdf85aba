from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest
import requests

from aba_billing.auth.session import SessionContext
from aba_billing.core.config import get_config
from aba_billing.core.enums import InvoiceStatus, UserRole
from aba_billing.schemas.invoices import Invoice, Owned, Unowned

BASE_URL = "http://api.test"
NOW = datetime(2026, 10, 19, 10, 0, 0)


class FakeHTTP:
    """Stand-in for requests.Session that replays queued responses.

    Queue items may be a Response, an exception to raise, or a callable
    taking (method, url, kwargs) and returning a Response.
    """

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(method, url, kwargs)
        return item

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        self.closed = True


def build_response(status_code: int = 200, body=None, content: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.url = BASE_URL
    if content is not None:
        response._content = content
        response.headers["Content-Type"] = "application/pdf"
    else:
        response._content = json.dumps(body).encode("utf-8") if body is not None else b""
        response.headers["Content-Type"] = "application/json"
    return response


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def respond():
    return build_response


@pytest.fixture
def fake_http():
    return FakeHTTP()


@pytest.fixture
def admin_session() -> SessionContext:
    return SessionContext(role=UserRole.ADMIN, user_id=1, token="admin-token", name="Admin")


@pytest.fixture
def parent_session() -> SessionContext:
    return SessionContext(role=UserRole.PAI, user_id=7, token="parent-token", name="Maria")


@pytest.fixture
def make_invoice():
    def _make(
        id: int = 1,
        status: InvoiceStatus = InvoiceStatus.PENDING,
        amount: str = "100",
        date: str = "2026-10-01",
        due_date: str | None = None,
        number: str | None = None,
        description: str | None = None,
        owners: tuple[int, ...] = (),
    ) -> Invoice:
        return Invoice(
            id=id,
            date=date,
            amount=Decimal(amount),
            currency="MZN",
            status=status,
            description=description if description is not None else f"Consulta #{id}",
            number=number,
            due_date=due_date,
            ownership=Owned(frozenset(owners)) if owners else Unowned(),
        )

    return _make

"""Consultation reads needed by the invoice-creation picker."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from aba_billing.core.exceptions import ServiceError
from aba_billing.schemas.consultations import ConsultationLite
from aba_billing.services.base_client import BaseClient

logger = logging.getLogger(__name__)

BASE = "/consultations"


def _rows(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


def _to_lite(rows: list[dict[str, Any]]) -> list[ConsultationLite]:
    fallback_date = datetime.now().isoformat()
    try:
        return [ConsultationLite.from_row(row, fallback_date) for row in rows]
    except (KeyError, TypeError, ValueError) as exc:
        raise ServiceError(f"Invalid consultation payload: {exc}") from exc


class ConsultationService(BaseClient):
    def list_consultations(self) -> list[dict[str, Any]]:
        return _rows(self.request_json("GET", BASE))

    def list_consultations_lite(self, q: str = "", limit: int = 20) -> list[ConsultationLite]:
        """Search consultations for the picker.

        Uses `GET /consultations?lite=1` when the backend supports it and falls
        back to fetching everything and filtering locally when it errors.
        """
        params: dict[str, Any] = {}
        if q:
            params["q"] = q
        params["limit"] = limit
        params["lite"] = 1

        try:
            return _to_lite(_rows(self.request_json("GET", BASE, params=params)))
        except ServiceError as exc:
            logger.info(
                "consultations.lite.fallback",
                extra={"event": "consultations.lite.fallback", "error": str(exc)},
            )

        mapped = _to_lite(self.list_consultations())
        return [row for row in mapped if row.matches(q)][:limit]

"""Common schema module."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ErrorEnvelope(BaseModel):
    """Error body returned by the backend; only the message fields matter here."""

    model_config = ConfigDict(extra="ignore")

    detail: Any = None
    message: Any = None
    error: Any = None

    @property
    def text(self) -> str | None:
        for value in (self.detail, self.message, self.error):
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

"""Identifier generation helpers."""

from __future__ import annotations

from datetime import datetime


def new_invoice_number(consultation_id: int, now: datetime) -> str:
    """Build an invoice code tied to its consultation, e.g. INV-C12-1760868000000."""
    return f"INV-C{consultation_id}-{int(now.timestamp() * 1000)}"

"""CSV export of the currently filtered invoice list."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd

from aba_billing.schemas.invoices import Invoice

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Número", "FaturaID", "Data", "Vencimento", "Valor", "Estado", "Descrição"]


def export_filename(today: date) -> str:
    return f"faturas_{today.isoformat()}.csv"


def format_amount(amount: Decimal) -> str:
    """Plain number without trailing zeros: 500.00 -> 500, 75.50 -> 75.5."""
    return format(amount.normalize(), "f")


def quote_text(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def invoices_frame(invoices: Iterable[Invoice]) -> pd.DataFrame:
    rows = [
        {
            "Número": inv.number or "",
            "FaturaID": str(inv.id),
            "Data": inv.date,
            "Vencimento": inv.due_date or "",
            "Valor": format_amount(inv.amount),
            "Estado": inv.status.value,
            "Descrição": quote_text(inv.description),
        }
        for inv in invoices
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def render_csv(frame: pd.DataFrame) -> str:
    """Header and rows joined by newlines; only the description column is quoted."""
    lines = [",".join(CSV_COLUMNS)]
    lines.extend(",".join(row) for row in frame.itertuples(index=False, name=None))
    if len(lines) == 1:
        return lines[0] + "\n"
    return "\n".join(lines)


def export_invoices_csv(invoices: Iterable[Invoice], directory: str | Path, today: date) -> Path:
    """Write `faturas_<date>.csv` for the given invoices in their listed order."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / export_filename(today)

    frame = invoices_frame(invoices)
    path.write_text(render_csv(frame), encoding="utf-8")
    logger.info("invoices.csv.exported", extra={"event": "invoices.csv.exported", "count": len(frame), "path": str(path)})
    return path

"""Consultation projections used by the invoice-creation picker."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

NO_CHILD_NAME = "Sem nome"


def _nested(row: dict[str, Any], key: str) -> dict[str, Any]:
    value = row.get(key)
    return value if isinstance(value, dict) else {}


class ConsultationLite(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    date: str
    status: str | None = None
    child_id: int | None = None
    child_name: str = NO_CHILD_NAME
    psychologist_id: int | None = None
    psychologist_name: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any], fallback_date: str) -> "ConsultationLite":
        """Build from a lite row or a full consultation with nested child/psychologist."""
        child = _nested(row, "child")
        psychologist = _nested(row, "psychologist")
        psychologist_name = psychologist.get("name") or row.get("psychologistName")
        if not psychologist_name and isinstance(row.get("psychologist"), str):
            psychologist_name = row["psychologist"]
        return cls(
            id=int(row["id"]),
            date=row.get("date") or row.get("createdAt") or fallback_date,
            status=row.get("status"),
            child_id=child.get("id", row.get("childId")),
            child_name=child.get("name") or row.get("childName") or NO_CHILD_NAME,
            psychologist_id=psychologist.get("id", row.get("psychologistId")),
            psychologist_name=psychologist_name or "",
        )

    def matches(self, term: str) -> bool:
        """Client-side search by id, child name or psychologist name."""
        needle = term.strip().lower()
        if not needle:
            return True
        return (
            needle in str(self.id)
            or needle in self.child_name.lower()
            or needle in self.psychologist_name.lower()
        )

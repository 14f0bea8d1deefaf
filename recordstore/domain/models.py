"""
Domain models for the record store.

Defines the ``Record`` shape aligned with the ``records`` table. Records are
built from rows the storage engine returns; they are read-only snapshots and
are never cached, every read goes back to the store.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from recordstore.domain.contract import DEFAULT_CATEGORY_LABEL, Classifier


class Record(BaseModel):
    """
    Representation of a single row in the `records` table.
    """

    id: int = Field(..., ge=0, description="Primary key, assigned by the store.")
    name: str = Field(..., description="Required display name.")
    category: Optional[str] = Field(None, description="Optional free-form category.")
    classifier: Classifier = Field(..., description="One of the Classifier constants.")
    measure: int = Field(0, ge=0, description="Non-negative measure, 0 when not given.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Record":
        return cls.model_validate(dict(row))

    @property
    def display_category(self) -> str:
        """Category for display; missing or empty falls back to a default label."""
        return self.category or DEFAULT_CATEGORY_LABEL


__all__ = ["Record"]

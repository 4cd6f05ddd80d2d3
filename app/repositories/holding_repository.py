"""
app/repositories/holding_repository.py

Point lookup, insert and update for canonical holding records.

One repository class serves every holding table; the model class is passed in.
The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class HoldingRepository(Generic[ModelT]):
    """
    Repository for one holding model keyed by integer ``id``.
    """

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self._session = session
        self._model = model

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, record_id: int) -> ModelT | None:
        return self._session.get(self._model, record_id)

    def list_all(self) -> list[ModelT]:
        stmt = select(self._model).order_by(self._model.id)
        return list(self._session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, values: Mapping[str, Any]) -> ModelT:
        """
        Insert one row and flush so the generated id is available.
        """

        row = self._model(**dict(values))
        self._session.add(row)
        self._session.flush()
        return row

    def update(self, record_id: int, values: Mapping[str, Any]) -> int:
        """
        Update one row by id.

        Returns
        -------
        int
            Number of rows affected; 0 means the row no longer exists.
        """

        stmt = (
            update(self._model)
            .where(self._model.id == record_id)
            .values(**dict(values))
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return result.rowcount or 0


def row_to_payload(row: Any, field_names: Iterable[str]) -> dict[str, Any]:
    """
    Rebuild a manual-entry payload from a stored row.

    Dates are rendered back to ``YYYY-MM-DD`` and JSON ``custom_fields`` are
    flattened to ``custom_fields.<name>`` keys, so the result validates
    exactly like a client submission.
    """

    payload: dict[str, Any] = {}
    for name in field_names:
        if name.startswith("custom_fields."):
            custom = getattr(row, "custom_fields", None) or {}
            value = custom.get(name.split(".", 1)[1])
        else:
            value = getattr(row, name, None)
        if isinstance(value, datetime):
            value = value.date().isoformat()
        elif isinstance(value, date):
            value = value.isoformat()
        payload[name] = value
    return payload

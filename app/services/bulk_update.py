"""
app/services/bulk_update.py

Bulk update coordinator: merge, validate and write a batch of partial
updates inside one transaction.

Items are independent: each runs inside its own SAVEPOINT. A missing record,
a validation failure, a unique-key conflict or a write that touches zero
rows rolls back and fails only that item. The transaction commits when at
least one item succeeded; when none did, it is rolled back and the whole call
raises ``BulkUpdateFailedError``. Failures are reported by record id; the
order of the failure list follows input order but callers correlate by id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.field_value import decode_payload
from app.domain.plugins import BulkUpdateFailure, BulkUpdateItem, BulkUpdateResult, ValidationResult
from app.logging_utils import log_event
from app.plugins.errors import BulkUpdateFailedError, StorageError
from app.repositories.holding_repository import HoldingRepository, row_to_payload
from db.base import Base
from db.session import SessionFactory

logger = logging.getLogger(__name__)

RECORD_NOT_FOUND = "record not found"
RECORD_CONFLICT = "conflicts with an existing record"

Validate = Callable[[Mapping[str, Any]], ValidationResult]
ToValues = Callable[[Session, Any, Mapping[str, Any]], Mapping[str, Any]]


class BulkUpdateCoordinator:
    """
    Applies ``BulkUpdateItem`` batches to one holding table.

    Parameters
    ----------
    session_factory:
        Opens the session that owns the batch transaction.
    model:
        Holding model keyed by integer ``id``.
    field_names:
        Schema field names used to rebuild a full payload from a stored row.
    validate:
        Validation entry point applied to each merged payload.
    to_values:
        Maps ``(session, existing_row, canonical_record)`` to column values.
    plugin_name:
        Log context.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        model: type[Base],
        field_names: Sequence[str],
        validate: Validate,
        to_values: ToValues,
        plugin_name: str,
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self._field_names = list(field_names)
        self._validate = validate
        self._to_values = to_values
        self._plugin_name = plugin_name

    def apply(self, items: Sequence[BulkUpdateItem]) -> BulkUpdateResult:
        failures: list[BulkUpdateFailure] = []
        updated_ids: list[int] = []

        with self._session_factory() as session:
            try:
                repository = HoldingRepository(session, self._model)
                for item in items:
                    failure = self._apply_isolated(session, repository, item)
                    if failure is None:
                        updated_ids.append(item.id)
                    else:
                        failures.append(failure)

                if not updated_ids:
                    session.rollback()
                    log_event(
                        logger,
                        logging.WARNING,
                        "bulk_update_failed",
                        plugin=self._plugin_name,
                        failure_count=len(failures),
                    )
                    raise BulkUpdateFailedError(failures)

                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception(
                    "Bulk update transaction failed plugin=%s error=%s",
                    self._plugin_name,
                    exc,
                )
                raise StorageError(f"bulk update for {self._plugin_name} failed") from exc

        log_event(
            logger,
            logging.INFO,
            "bulk_update_committed",
            plugin=self._plugin_name,
            success_count=len(updated_ids),
            failure_count=len(failures),
            failed_ids=[failure.id for failure in failures],
        )
        return BulkUpdateResult(
            success_count=len(updated_ids),
            failure_count=len(failures),
            failures=tuple(failures),
            updated_ids=tuple(updated_ids),
        )

    def _apply_isolated(
        self,
        session: Session,
        repository: HoldingRepository[Any],
        item: BulkUpdateItem,
    ) -> BulkUpdateFailure | None:
        savepoint = session.begin_nested()
        try:
            failure = self._apply_item(session, repository, item)
        except IntegrityError as exc:
            savepoint.rollback()
            logger.warning(
                "Bulk update item conflicts with an existing record plugin=%s record_id=%s error=%s",
                self._plugin_name,
                item.id,
                exc.orig,
            )
            return BulkUpdateFailure(id=item.id, error=RECORD_CONFLICT)
        except SQLAlchemyError:
            savepoint.rollback()
            raise

        if failure is None:
            savepoint.commit()
        else:
            savepoint.rollback()
        return failure

    def _apply_item(
        self,
        session: Session,
        repository: HoldingRepository[Any],
        item: BulkUpdateItem,
    ) -> BulkUpdateFailure | None:
        existing = session.get(self._model, item.id, populate_existing=True)
        if existing is None:
            return BulkUpdateFailure(id=item.id, error=RECORD_NOT_FOUND)

        # The whole merged record is re-validated so cross-field rules see
        # the stored values alongside the changed ones.
        merged: dict[str, Any] = row_to_payload(existing, self._field_names)
        merged.update(decode_payload(item.changes))

        result = self._validate(merged)
        if not result.valid:
            return BulkUpdateFailure(
                id=item.id,
                error="validation failed",
                fields=tuple(result.error_fields()),
                errors=result.errors,
            )

        values = self._to_values(session, existing, result.data)
        if repository.update(item.id, values) == 0:
            return BulkUpdateFailure(
                id=item.id,
                error=f"no {self._model.__tablename__} record found with id {item.id}",
            )
        return None

"""
app/plugins/base.py

Capability contract every plugin satisfies, plus the shared implementation
used by the manual-entry plugins.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.connectors.base import QuoteProvider, QuoteUnavailableError
from app.domain.plugins import (
    Account,
    Balance,
    BulkUpdateItem,
    BulkUpdateResult,
    DataSourceType,
    DateRange,
    FieldSpec,
    ManualEntrySchema,
    PluginConfig,
    PluginDescriptor,
    PluginHealth,
    PluginMetrics,
    PluginStatus,
    Transaction,
    ValidationResult,
)
from app.plugins.errors import (
    BulkUpdateFailedError,
    ManualEntryNotSupportedError,
    ManualEntryValidationError,
    PluginInitializationError,
    RecordConflictError,
    RecordNotFoundError,
    StorageError,
)
from app.repositories.account_repository import AccountResolver
from app.repositories.holding_repository import HoldingRepository
from app.services.bulk_update import BulkUpdateCoordinator
from app.validators.manual_entry_validator import CrossFieldRule, Derivation, ManualEntryValidator
from db.base import Base
from db.session import SessionFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FinancialDataPlugin(ABC):
    """
    One data-source adapter.

    Identity accessors are pure. ``is_healthy`` must be cheap and must not
    touch the network. Plugins without manual entry keep the default
    manual-entry methods, which all raise ``ManualEntryNotSupportedError``,
    so callers can gate once on ``supports_manual_entry``.
    """

    descriptor: ClassVar[PluginDescriptor]

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def friendly_name(self) -> str:
        return self.descriptor.friendly_name

    @property
    def version(self) -> str:
        return self.descriptor.version

    @property
    def description(self) -> str:
        return self.descriptor.description

    @property
    def plugin_type(self) -> str:
        return self.descriptor.plugin_type

    @property
    def data_source(self) -> str:
        return self.descriptor.data_source

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    def initialize(self, config: PluginConfig) -> None:
        """
        Idempotent setup. Raises ``PluginInitializationError`` on failure.
        """

    def authenticate(self) -> None:
        return None

    def disconnect(self) -> None:
        return None

    @abstractmethod
    def is_healthy(self) -> PluginHealth:
        """
        Report current health without blocking on I/O.
        """

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def get_accounts(self) -> list[Account]:
        return []

    def get_balances(self) -> list[Balance]:
        return []

    def get_transactions(self, date_range: DateRange) -> list[Transaction]:
        return []

    def refresh_data(self) -> None:
        return None

    @property
    def last_update(self) -> datetime | None:
        return None

    # ------------------------------------------------------------------
    # Manual entry
    # ------------------------------------------------------------------

    def supports_manual_entry(self) -> bool:
        return False

    def get_manual_entry_schema(self) -> ManualEntrySchema:
        raise ManualEntryNotSupportedError(self.name)

    def validate_manual_entry(self, payload: Mapping[str, Any]) -> ValidationResult:
        raise ManualEntryNotSupportedError(self.name)

    def process_manual_entry(self, payload: Mapping[str, Any]) -> int:
        raise ManualEntryNotSupportedError(self.name)

    def update_manual_entry(self, record_id: int, payload: Mapping[str, Any]) -> None:
        raise ManualEntryNotSupportedError(self.name)


class SupportsBulkUpdate(ABC):
    """
    Optional capability for plugins whose records are batch-edited.
    """

    @abstractmethod
    def bulk_update_manual_entry(self, items: Sequence[BulkUpdateItem]) -> BulkUpdateResult:
        """
        Apply partial updates per item; raise ``BulkUpdateFailedError`` if none succeed.
        """


class SupportsCategorySchema(ABC):
    """
    Optional capability for plugins whose schema depends on a category record.
    """

    @abstractmethod
    def get_manual_entry_schema_for_category(self, category_id: int) -> ManualEntrySchema:
        """
        Return the base schema extended with the category's custom fields.
        """


@dataclass(frozen=True)
class DefaultAccount:
    name: str
    account_type: str
    institution: str
    data_source_type: str = DataSourceType.MANUAL


@dataclass(frozen=True)
class AccountKey:
    """
    Identifying tuple for a per-holding account.
    """

    name: str
    account_type: str
    institution: str


class _Metrics:
    """
    Thread-safe request counters reported through ``PluginHealth``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._errors = 0
        self._last_update: datetime | None = None

    def record_success(self) -> None:
        with self._lock:
            self._requests += 1
            self._last_update = datetime.now(timezone.utc)

    def record_failure(self) -> None:
        with self._lock:
            self._requests += 1
            self._errors += 1

    def touch(self) -> None:
        with self._lock:
            self._last_update = datetime.now(timezone.utc)

    @property
    def last_update(self) -> datetime | None:
        with self._lock:
            return self._last_update

    def snapshot(self) -> PluginMetrics:
        with self._lock:
            success_rate = 1.0 if self._requests == 0 else (self._requests - self._errors) / self._requests
            return PluginMetrics(
                request_count=self._requests,
                error_count=self._errors,
                success_rate=success_rate,
                last_update=self._last_update,
            )


class ManualEntryPlugin(FinancialDataPlugin):
    """
    Shared behavior for plugins backed by one holding table.

    Subclasses declare ``descriptor``, ``model``, ``default_account`` and
    implement ``_schema_fields`` and ``_to_row``. Cross-field rules,
    derivations, per-holding account keys and quote lookups are optional hooks.
    """

    model: ClassVar[type[Base]]
    default_account: ClassVar[DefaultAccount]
    currency: ClassVar[str] = "USD"

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        quote_provider: QuoteProvider | None = None,
        validator: ManualEntryValidator | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._quote_provider = quote_provider
        self._validator = validator or ManualEntryValidator()
        self._account_id: int | None = None
        self._config = PluginConfig(enabled=False)
        self._metrics = _Metrics()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def account_id(self) -> int | None:
        return self._account_id

    @property
    def config(self) -> PluginConfig:
        return self._config

    def initialize(self, config: PluginConfig) -> None:
        account = self.default_account
        try:
            with self._session_factory() as session:
                identity = AccountResolver(session).resolve(
                    account_name=account.name,
                    account_type=account.account_type,
                    institution=account.institution,
                    data_source_type=account.data_source_type,
                    plugin_name=self.name,
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Plugin initialization failed plugin=%s error=%s", self.name, exc)
            raise PluginInitializationError(
                f"failed to initialize {self.name} account: {exc}"
            ) from exc

        self._account_id = identity.account_id
        self._config = config
        logger.info("Plugin initialized plugin=%s account_id=%s", self.name, identity.account_id)

    def is_healthy(self) -> PluginHealth:
        now = datetime.now(timezone.utc)
        if self._account_id is None:
            return PluginHealth(
                status=PluginStatus.INACTIVE,
                last_checked=now,
                message="plugin has not been initialized",
                metrics=self._metrics.snapshot(),
            )
        return PluginHealth(status=PluginStatus.ACTIVE, last_checked=now, metrics=self._metrics.snapshot())

    def refresh_data(self) -> None:
        self._metrics.touch()

    @property
    def last_update(self) -> datetime | None:
        return self._metrics.last_update

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def get_accounts(self) -> list[Account]:
        account = self.default_account
        return [
            Account(
                id=str(self._account_id) if self._account_id is not None else "",
                name=account.name,
                type=account.account_type,
                institution=account.institution,
                data_source=account.data_source_type,
                last_updated=self.last_update,
            )
        ]

    def get_balances(self) -> list[Balance]:
        try:
            with self._session_factory() as session:
                rows = HoldingRepository(session, self.model).list_all()
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to read {self.name} balances") from exc

        return [
            Balance(
                account_id=str(row.account_id),
                amount=self._balance_amount(row),
                currency=getattr(row, "currency", None) or self.currency,
                as_of_date=row.updated_at,
                data_source=self.data_source,
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Manual entry
    # ------------------------------------------------------------------

    def supports_manual_entry(self) -> bool:
        return True

    def get_manual_entry_schema(self) -> ManualEntrySchema:
        return ManualEntrySchema(
            name=self.friendly_name,
            description=self.description,
            version=self.version,
            fields=self._schema_fields(),
        )

    def validate_manual_entry(self, payload: Mapping[str, Any]) -> ValidationResult:
        return self._validator.validate(
            schema=self.get_manual_entry_schema(),
            payload=payload,
            rules=self._rules(),
            derivations=self._derivations(),
        )

    def process_manual_entry(self, payload: Mapping[str, Any]) -> int:
        """
        Validate and insert one record, returning its id.
        """

        data = self._require_valid(payload)
        priced = self._lookup_prices(data, creating=True)

        def write(session: Session) -> int:
            values = dict(self._to_row(data))
            values.update(priced)
            values["account_id"] = self._resolve_account(session, data)
            row = HoldingRepository(session, self.model).insert(values)
            self._after_write(session, data, priced)
            return row.id

        record_id = self._run_write(write, action="create")
        logger.info("Manual entry created plugin=%s record_id=%s", self.name, record_id)
        return record_id

    def update_manual_entry(self, record_id: int, payload: Mapping[str, Any]) -> None:
        """
        Validate a complete payload and overwrite record ``record_id`` with it.
        """

        data = self._require_valid(payload)
        priced = self._lookup_prices(data, creating=False)

        def write(session: Session) -> None:
            repository = HoldingRepository(session, self.model)
            if repository.get(record_id) is None:
                raise RecordNotFoundError(
                    f"no {self.model.__tablename__} record found with id {record_id}",
                    record_id=record_id,
                )
            values = dict(self._to_row(data))
            values.update(priced)
            values["account_id"] = self._resolve_account(session, data)
            if repository.update(record_id, values) == 0:
                raise RecordNotFoundError(
                    f"no {self.model.__tablename__} record found with id {record_id}",
                    record_id=record_id,
                )
            self._after_write(session, data, priced)

        self._run_write(write, action="update")
        logger.info("Manual entry updated plugin=%s record_id=%s", self.name, record_id)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        ...

    @abstractmethod
    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Map a canonical record onto column values (without ``account_id``).
        """

    def _rules(self) -> Sequence[CrossFieldRule]:
        return ()

    def _derivations(self) -> Sequence[Derivation]:
        return ()

    def _account_key(self, data: Mapping[str, Any]) -> AccountKey | None:
        """
        Per-holding account identity; None files the record under the default account.
        """

        return None

    def _lookup_prices(self, data: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        """
        Column values obtained from the quote boundary, fetched before any transaction opens.
        """

        return {}

    def _after_write(self, session: Session, data: Mapping[str, Any], priced: Mapping[str, Any]) -> None:
        return None

    def _balance_amount(self, row: Any) -> float:
        return 0.0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_valid(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        result = self.validate_manual_entry(payload)
        if not result.valid:
            self._metrics.record_failure()
            raise ManualEntryValidationError(result.errors)
        return dict(result.data)

    def _resolve_account(self, session: Session, data: Mapping[str, Any]) -> int:
        key = self._account_key(data)
        if key is None:
            if self._account_id is None:
                raise PluginInitializationError(f"plugin {self.name} has not been initialized")
            return self._account_id

        identity = AccountResolver(session).resolve(
            account_name=key.name,
            account_type=key.account_type,
            institution=key.institution,
            data_source_type=self.data_source,
            plugin_name=self.name,
        )
        return identity.account_id

    def _fetch_quote(self, symbol: str) -> float | None:
        """
        Current price for ``symbol``; None when the quote boundary fails.
        """

        if self._quote_provider is None:
            return None
        try:
            return self._quote_provider.get_current_price(symbol)
        except QuoteUnavailableError as exc:
            logger.warning(
                "Quote lookup failed plugin=%s symbol=%s error=%s",
                self.name,
                symbol,
                exc,
            )
            return None

    def _run_write(self, write: Callable[[Session], T], *, action: str) -> T:
        with self._session_factory() as session:
            try:
                outcome = write(session)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                self._metrics.record_failure()
                logger.warning(
                    "Manual entry conflicts with an existing record plugin=%s action=%s error=%s",
                    self.name,
                    action,
                    exc.orig,
                )
                raise RecordConflictError(
                    f"{self.name} entry conflicts with an existing record"
                ) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                self._metrics.record_failure()
                logger.exception(
                    "Manual entry write failed plugin=%s action=%s error=%s",
                    self.name,
                    action,
                    exc,
                )
                raise StorageError(f"failed to {action} {self.name} entry") from exc
            except RecordNotFoundError:
                session.rollback()
                self._metrics.record_failure()
                raise
        self._metrics.record_success()
        return outcome


class BulkEditablePlugin(ManualEntryPlugin, SupportsBulkUpdate):
    """
    Manual-entry plugin that also accepts batches of partial updates.
    """

    def bulk_update_manual_entry(self, items: Sequence[BulkUpdateItem]) -> BulkUpdateResult:
        coordinator = BulkUpdateCoordinator(
            session_factory=self._session_factory,
            model=self.model,
            field_names=self.get_manual_entry_schema().field_names(),
            validate=self.validate_manual_entry,
            to_values=self._bulk_values,
            plugin_name=self.name,
        )
        try:
            result = coordinator.apply(items)
        except (BulkUpdateFailedError, StorageError):
            self._metrics.record_failure()
            raise
        self._metrics.record_success()
        return result

    def _bulk_values(self, session: Session, existing: Any, data: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(self._to_row(data))
        values["account_id"] = self._resolve_account(session, data)
        return values

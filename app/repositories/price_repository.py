"""
app/repositories/price_repository.py

Quote cache rows and price coverage counts across priced holdings.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, or_, select, union, update
from sqlalchemy.orm import Session

from db.models.equity_grant import EquityGrant
from db.models.stock_holding import StockHolding
from db.models.stock_price import StockPrice


class PriceRepository:
    """
    Repository for ``stock_prices`` plus symbol coverage queries.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record_price(
        self,
        *,
        symbol: str,
        price: float,
        source: str | None,
        observed_at: datetime | None = None,
    ) -> StockPrice:
        row = StockPrice(
            symbol=symbol,
            price=price,
            source=source,
            timestamp=observed_at or datetime.now(timezone.utc),
        )
        self._session.add(row)
        self._session.flush()
        return row

    def apply_price(self, *, symbol: str, price: float) -> int:
        """
        Set ``current_price`` on every stock holding and equity grant for ``symbol``.

        Returns
        -------
        int
            Number of holding and grant rows updated.
        """

        holdings = self._session.execute(
            update(StockHolding)
            .where(StockHolding.symbol == symbol)
            .values(current_price=price)
            .execution_options(synchronize_session=False)
        )
        grants = self._session.execute(
            update(EquityGrant)
            .where(EquityGrant.company_symbol == symbol)
            .values(current_price=price)
            .execution_options(synchronize_session=False)
        )
        return (holdings.rowcount or 0) + (grants.rowcount or 0)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def latest_cache_update(self) -> datetime | None:
        latest = self._session.execute(select(func.max(StockPrice.timestamp))).scalar()
        if latest is not None and latest.tzinfo is None:
            # SQLite drops tzinfo; stored values are always UTC.
            latest = latest.replace(tzinfo=timezone.utc)
        return latest

    def count_symbols(self) -> tuple[int, int]:
        """
        Return ``(stale_count, total_count)`` of distinct priced symbols.

        A symbol is stale when any holding or grant for it has a NULL or zero
        current price.
        """

        all_symbols = union(
            select(StockHolding.symbol.label("symbol")),
            select(EquityGrant.company_symbol.label("symbol")),
        ).subquery()
        total = self._session.execute(select(func.count()).select_from(all_symbols)).scalar() or 0

        stale_symbols = union(
            select(StockHolding.symbol.label("symbol")).where(
                or_(StockHolding.current_price.is_(None), StockHolding.current_price == 0)
            ),
            select(EquityGrant.company_symbol.label("symbol")).where(
                or_(EquityGrant.current_price.is_(None), EquityGrant.current_price == 0)
            ),
        ).subquery()
        stale = self._session.execute(select(func.count()).select_from(stale_symbols)).scalar() or 0
        return int(stale), int(total)

    def list_symbols(self) -> list[str]:
        """
        Distinct symbols across stock holdings and equity grants, sorted.
        """

        symbols = union(
            select(StockHolding.symbol.label("symbol")),
            select(EquityGrant.company_symbol.label("symbol")),
        ).subquery()
        stmt = select(symbols.c.symbol).order_by(symbols.c.symbol)
        return list(self._session.execute(stmt).scalars().all())

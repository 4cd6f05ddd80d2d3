"""
Tests for the bulk update coordinator through the cash holdings plugin.

Coverage:
- partial success commits the good items and reports the missing id
- total failure raises and leaves stored records untouched
- merged records are validated as a whole
- a unique-key conflict fails only its own item
- the coordinator can be driven directly for any holding model, including
  the zero-rows-affected branch
"""

from __future__ import annotations

import pytest
from sqlalchemy import delete, select

from app.domain.plugins import BulkUpdateItem, ErrorCode
from app.plugins.errors import BulkUpdateFailedError
from app.plugins.manager import PluginManager
from app.services.bulk_update import RECORD_CONFLICT, RECORD_NOT_FOUND, BulkUpdateCoordinator
from db.models.account import Account
from db.models.cash_holding import CashHolding


def _cash(institution: str, account_name: str, balance: float) -> dict[str, object]:
    return {
        "institution_name": institution,
        "account_name": account_name,
        "account_type": "checking",
        "current_balance": balance,
    }


@pytest.fixture()
def cash_ids(manager: PluginManager) -> list[int]:
    return [
        manager.process_manual_entry("cash_holdings", _cash("Chase Bank", "Primary Checking", 1000)),
        manager.process_manual_entry("cash_holdings", _cash("Ally Bank", "Savings", 5000)),
    ]


def _balances(session_factory) -> dict[int, float]:
    with session_factory() as session:
        rows = session.execute(select(CashHolding)).scalars().all()
        return {row.id: row.current_balance for row in rows}


# ---------------------------------------------------------------------------
# Through the plugin
# ---------------------------------------------------------------------------


class TestBulkUpdate:
    def test_partial_success_commits_successful_items(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, second = cash_ids
        result = manager.bulk_update(
            "cash_holdings",
            [
                BulkUpdateItem(id=first, changes={"current_balance": 1500}),
                BulkUpdateItem(id=second, changes={"current_balance": "5250.25"}),
                BulkUpdateItem(id=99999, changes={"current_balance": 10}),
            ],
        )

        assert result.success_count == 2
        assert result.failure_count == 1
        assert result.updated_ids == (first, second)
        assert [(f.id, f.error) for f in result.failures] == [(99999, RECORD_NOT_FOUND)]
        assert _balances(session_factory) == {first: 1500.0, second: 5250.25}

    def test_total_failure_raises_and_changes_nothing(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, _ = cash_ids
        before = _balances(session_factory)

        with pytest.raises(BulkUpdateFailedError) as exc_info:
            manager.bulk_update(
                "cash_holdings",
                [
                    BulkUpdateItem(id=first, changes={"current_balance": -1}),
                    BulkUpdateItem(id=424242, changes={"current_balance": 1}),
                ],
            )

        failures = {failure.id: failure for failure in exc_info.value.failures}
        assert set(failures) == {first, 424242}
        assert failures[first].fields == ("current_balance",)
        assert failures[first].errors[0].code == ErrorCode.INVALID_RANGE
        assert failures[424242].error == RECORD_NOT_FOUND
        assert _balances(session_factory) == before

    def test_merged_record_keeps_unchanged_fields(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, _ = cash_ids
        manager.bulk_update(
            "cash_holdings",
            [BulkUpdateItem(id=first, changes={"notes": "emergency fund", "interest_rate": 4.25})],
        )

        with session_factory() as session:
            row = session.get(CashHolding, first)
            assert row.notes == "emergency fund"
            assert row.interest_rate == 4.25
            assert row.current_balance == 1000.0
            assert row.institution_name == "Chase Bank"
            assert row.currency == "USD"

    def test_renaming_moves_record_to_matching_account(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, _ = cash_ids
        manager.bulk_update(
            "cash_holdings",
            [BulkUpdateItem(id=first, changes={"account_name": "Joint Checking"})],
        )

        with session_factory() as session:
            row = session.get(CashHolding, first)
            account = session.get(Account, row.account_id)
            assert account.account_name == "Chase Bank Joint Checking"
            assert account.institution == "Chase Bank"

    def test_unique_conflict_fails_only_that_item(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, _ = cash_ids
        third = manager.process_manual_entry("cash_holdings", _cash("Ally Bank", "Online Savings", 700))

        result = manager.bulk_update(
            "cash_holdings",
            [
                BulkUpdateItem(id=first, changes={"current_balance": 1500}),
                # Renaming onto the existing Ally Bank "Savings" holding collides.
                BulkUpdateItem(id=third, changes={"account_name": "Savings"}),
            ],
        )

        assert result.success_count == 1
        assert result.updated_ids == (first,)
        assert [(f.id, f.error) for f in result.failures] == [(third, RECORD_CONFLICT)]
        with session_factory() as session:
            assert session.get(CashHolding, first).current_balance == 1500.0
            assert session.get(CashHolding, third).account_name == "Online Savings"

    def test_only_conflicts_is_a_total_failure(
        self, manager: PluginManager, cash_ids: list[int], session_factory
    ) -> None:
        first, _ = cash_ids
        before = _balances(session_factory)

        with pytest.raises(BulkUpdateFailedError) as exc_info:
            manager.bulk_update(
                "cash_holdings",
                [
                    BulkUpdateItem(
                        id=first,
                        changes={"institution_name": "Ally Bank", "account_name": "Savings", "current_balance": 1},
                    )
                ],
            )

        assert [(f.id, f.error) for f in exc_info.value.failures] == [(first, RECORD_CONFLICT)]
        assert _balances(session_factory) == before


# ---------------------------------------------------------------------------
# Coordinator directly
# ---------------------------------------------------------------------------


class TestBulkUpdateCoordinator:
    def test_validation_failure_fails_only_that_item(
        self, registry, cash_ids: list[int], session_factory
    ) -> None:
        plugin = registry.get("cash_holdings")
        first, second = cash_ids
        written: list[int] = []

        def to_values(session, existing, data):
            written.append(existing.id)
            return {"current_balance": data["current_balance"]}

        coordinator = BulkUpdateCoordinator(
            session_factory=session_factory,
            model=CashHolding,
            field_names=plugin.get_manual_entry_schema().field_names(),
            validate=plugin.validate_manual_entry,
            to_values=to_values,
            plugin_name="cash_holdings",
        )

        result = coordinator.apply(
            [
                BulkUpdateItem(id=first, changes={"current_balance": 1}),
                BulkUpdateItem(id=second, changes={"account_type": "brokerage_cash"}),
            ]
        )

        assert result.success_count == 1
        assert result.failures[0].id == second
        assert result.failures[0].fields == ("account_type",)
        assert written == [first]
        assert _balances(session_factory)[first] == 1.0

    def test_zero_row_update_fails_only_that_item(
        self, registry, cash_ids: list[int], session_factory
    ) -> None:
        plugin = registry.get("cash_holdings")
        first, second = cash_ids

        def to_values(session, existing, data):
            if existing.id == second:
                # The row disappears between the read and the write.
                session.execute(delete(CashHolding).where(CashHolding.id == second))
            return {"current_balance": data["current_balance"]}

        coordinator = BulkUpdateCoordinator(
            session_factory=session_factory,
            model=CashHolding,
            field_names=plugin.get_manual_entry_schema().field_names(),
            validate=plugin.validate_manual_entry,
            to_values=to_values,
            plugin_name="cash_holdings",
        )

        result = coordinator.apply(
            [
                BulkUpdateItem(id=first, changes={"current_balance": 10}),
                BulkUpdateItem(id=second, changes={"current_balance": 20}),
            ]
        )

        assert result.updated_ids == (first,)
        assert [failure.id for failure in result.failures] == [second]
        assert "record found" in result.failures[0].error
        # The failed item's savepoint is rolled back, delete included.
        assert _balances(session_factory) == {first: 10.0, second: 5000.0}

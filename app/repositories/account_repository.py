"""
app/repositories/account_repository.py

Find-or-create resolution of logical account identities.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.account import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountIdentity:
    """
    A resolved account id plus the tuple that identifies it.
    """

    account_id: int
    account_name: str
    institution: str
    data_source_type: str
    created: bool = False


class AccountResolver:
    """
    Maps ``(account_name, institution, data_source_type)`` onto one account row.

    Re-submitting the same tuple always yields the same id. The lookup and
    insert are separate statements; a unique constraint on the tuple turns
    a lost race into an ``IntegrityError``, which is resolved by re-reading
    the winner's row.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def resolve(
        self,
        *,
        account_name: str,
        account_type: str,
        institution: str,
        data_source_type: str,
        plugin_name: str | None = None,
    ) -> AccountIdentity:
        """
        Return the account for the identifying tuple, creating it if absent.

        Parameters
        ----------
        account_name:
            Holding-specific grouping key, e.g. ``"Chase Bank Primary Checking"``.
        account_type:
            Stored on creation only; not part of the identity.
        institution:
            Institution the holding lives at.
        data_source_type:
            ``manual``, ``api`` or ``scraping``.
        plugin_name:
            Used for log context only.

        Returns
        -------
        AccountIdentity
        """

        existing_id = self._find_id(
            account_name=account_name,
            institution=institution,
            data_source_type=data_source_type,
        )
        if existing_id is not None:
            return AccountIdentity(
                account_id=existing_id,
                account_name=account_name,
                institution=institution,
                data_source_type=data_source_type,
            )

        account = Account(
            account_name=account_name,
            account_type=account_type,
            institution=institution,
            data_source_type=data_source_type,
        )
        try:
            with self._session.begin_nested():
                self._session.add(account)
                self._session.flush()
        except IntegrityError:
            existing_id = self._find_id(
                account_name=account_name,
                institution=institution,
                data_source_type=data_source_type,
            )
            if existing_id is None:
                raise
            logger.info(
                "Account created concurrently plugin=%s account_name=%s account_id=%s",
                plugin_name,
                account_name,
                existing_id,
            )
            return AccountIdentity(
                account_id=existing_id,
                account_name=account_name,
                institution=institution,
                data_source_type=data_source_type,
            )

        logger.info(
            "Account created plugin=%s account_name=%s institution=%s account_id=%s",
            plugin_name,
            account_name,
            institution,
            account.id,
        )
        return AccountIdentity(
            account_id=account.id,
            account_name=account_name,
            institution=institution,
            data_source_type=data_source_type,
            created=True,
        )

    def _find_id(
        self,
        *,
        account_name: str,
        institution: str,
        data_source_type: str,
    ) -> int | None:
        stmt = select(Account.id).where(
            Account.account_name == account_name,
            Account.institution == institution,
            Account.data_source_type == data_source_type,
        )
        return self._session.execute(stmt).scalars().first()

"""
Account Store - Visitor accounts and credit balances.

Every operation is bounded by a timeout; timeouts and driver failures
surface as StoreUnavailableError, never as a hang.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from postengine.db.models import Account, CreditBalance, utc_now
from postengine.exceptions import CreditsExhaustedError, StoreUnavailableError
from postengine.models.domain import AccountData
from postengine.observability.metrics import metrics

logger = get_logger(__name__)


def _account_to_domain(account: Account) -> AccountData:
    """Convert ORM account to domain model."""
    return AccountData(
        account_id=account.id,
        anonymous_token=account.anonymous_token,
        is_pro=bool(account.is_pro),
        created_at=account.created_at,
    )


class AccountStore:
    """
    Find-or-create for visitor accounts plus credit balance access.

    Writes follow the pattern:
    1. Execute write
    2. Flush to database
    3. Read back and verify
    4. Commit
    """

    def __init__(
        self,
        session: AsyncSession,
        trial_allotment: int,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize store with database session and credit policy."""
        self.session = session
        self.trial_allotment = trial_allotment
        self.timeout_seconds = timeout_seconds

    async def ensure_account(self, anonymous_token: str) -> AccountData:
        """
        Get the account for an anonymous token, creating it on first sight.

        A new account gets a credit balance seeded with the trial allotment
        in the same transaction. A uniqueness conflict on insert means a
        concurrent request created the account first; the existing row is
        re-read and returned.

        Raises:
            StoreUnavailableError: Store unreachable, timed out, or the
                account vanished after a conflict
        """
        async with self._bounded("ensure_account"):
            account = await self._find_account_by_token(anonymous_token)
            if account is not None:
                return _account_to_domain(account)

            new_account = Account(
                id=uuid4(),
                anonymous_token=anonymous_token,
                is_pro=False,
                created_at=utc_now(),
            )

            try:
                self.session.add(new_account)
                await self.session.flush()
                self.session.add(
                    CreditBalance(
                        account_id=new_account.id,
                        remaining=self.trial_allotment,
                    )
                )
                await self.session.flush()
            except IntegrityError as e:
                # Race condition - account created by another request
                logger.info("account_creation_conflict", error=str(e.orig))
                await self.session.rollback()
                account = await self._find_account_by_token(anonymous_token)
                if account is None:
                    raise StoreUnavailableError(
                        "ensure_account", "account missing after uniqueness conflict"
                    ) from e
                return _account_to_domain(account)

            # Verify account was written
            verified = await self.session.get(Account, new_account.id)
            if verified is None:
                raise StoreUnavailableError(
                    "ensure_account", f"account {new_account.id} not found after insert"
                )

            await self.session.commit()

            metrics.accounts_created_total.inc()
            logger.info(
                "account_created",
                account_id=str(new_account.id),
                trial_allotment=self.trial_allotment,
            )
            return _account_to_domain(verified)

    async def read_balance(self, account_id: UUID) -> int:
        """
        Get remaining credits for an account.

        A missing balance row reads as 0 so the paywall denies rather than
        granting free generation.

        Raises:
            StoreUnavailableError: Store unreachable or timed out
        """
        async with self._bounded("read_balance"):
            stmt = select(CreditBalance.remaining).where(CreditBalance.account_id == account_id)
            result = await self.session.execute(stmt)
            remaining = result.scalar_one_or_none()

        if remaining is None:
            logger.warning("credit_balance_missing", account_id=str(account_id))
            return 0
        return int(remaining)

    async def debit(self, account_id: UUID, cost: int) -> int:
        """
        Atomically subtract cost from the balance if it still covers it.

        Single conditional UPDATE ... RETURNING, so concurrent requests
        cannot both spend the same credits or drive the balance negative.

        Returns:
            Remaining credits after the debit

        Raises:
            CreditsExhaustedError: Balance no longer covers cost (carries the
                current balance)
            StoreUnavailableError: Store unreachable or timed out
        """
        if cost < 1:
            raise ValueError(f"Debit cost must be positive: {cost}")

        async with self._bounded("debit"):
            stmt = (
                update(CreditBalance)
                .where(
                    CreditBalance.account_id == account_id,
                    CreditBalance.remaining >= cost,
                )
                .values(
                    remaining=CreditBalance.remaining - cost,
                    updated_at=utc_now(),
                )
                .returning(CreditBalance.remaining)
            )
            result = await self.session.execute(stmt)
            remaining = result.scalar_one_or_none()

            if remaining is None:
                await self.session.rollback()
                current = await self._current_balance(account_id)
            else:
                await self.session.commit()

        if remaining is None:
            raise CreditsExhaustedError(balance=current, required=cost)
        return int(remaining)

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    @asynccontextmanager
    async def _bounded(self, operation: str) -> AsyncIterator[None]:
        """Run a store operation under the timeout, translating failures."""
        start = time.perf_counter()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                yield
        except TimeoutError as e:
            metrics.record_db_query(operation, False, time.perf_counter() - start)
            metrics.record_error("StoreTimeout", operation)
            logger.error("store_timeout", operation=operation, timeout=self.timeout_seconds)
            raise StoreUnavailableError(
                operation, f"timed out after {self.timeout_seconds}s"
            ) from e
        except (SQLAlchemyError, OSError) as e:
            # asyncpg connect failures (refused, DNS) surface as bare OSError
            metrics.record_db_query(operation, False, time.perf_counter() - start)
            metrics.record_error(type(e).__name__, operation)
            logger.error("store_error", operation=operation, error=str(e))
            raise StoreUnavailableError(operation, str(e)) from e
        else:
            metrics.record_db_query(operation, True, time.perf_counter() - start)

    async def _find_account_by_token(self, anonymous_token: str) -> Account | None:
        """Find account by anonymous token."""
        stmt = select(Account).where(Account.anonymous_token == anonymous_token)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _current_balance(self, account_id: UUID) -> int:
        """Read the balance inside an already-bounded operation."""
        stmt = select(CreditBalance.remaining).where(CreditBalance.account_id == account_id)
        result = await self.session.execute(stmt)
        remaining = result.scalar_one_or_none()
        return int(remaining) if remaining is not None else 0

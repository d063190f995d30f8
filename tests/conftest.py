"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings before anything imports app.config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token-0123456789abcdef")
os.environ.setdefault("REPORT_EXCLUDED_USER_IDS", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count

import pytest_asyncio
from sqlalchemy import event, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config.staking_packages import calculate_max_earning, get_package
from app.models import (
    Base,
    InvitedMember,
    StakingEntry,
    StakingStatus,
    User,
    UserBalance,
    Voucher,
    VoucherStatus,
    VoucherType,
)
from app.utils.datetime_utils import utc_now


ADMIN_TOKEN = os.environ["ADMIN_API_TOKEN"]


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Database session for a test."""
    async with session_maker() as session:
        yield session


class DataFactory:
    """Inserts committed rows for tests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._seq = count(1)

    async def user(
        self,
        balance: Decimal | str | int = 0,
        sponsor: User | None = None,
        name: str | None = None,
        image: str | None = None,
        created_at: datetime | None = None,
    ) -> User:
        """User with a wallet row and an optional sponsor edge."""
        n = next(self._seq)
        user = User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            username=f"user{n}",
            image=image,
            invite_code=f"INVITE{n:02d}",
            created_at=created_at or utc_now(),
        )
        self.session.add(user)
        await self.session.flush()
        self.session.add(UserBalance(user_id=user.id, balance=Decimal(balance)))
        if sponsor is not None:
            self.session.add(InvitedMember(sponsor_id=sponsor.id, user_id=user.id))
        await self.session.commit()
        return user

    async def link(self, sponsor: User, user: User) -> None:
        """Add a raw sponsor edge (no loop checks)."""
        self.session.add(InvitedMember(sponsor_id=sponsor.id, user_id=user.id))
        await self.session.commit()

    async def stake(
        self,
        user: User,
        package_id: int = 1,
        total_earned: Decimal | str | int = 0,
        amount: Decimal | str | None = None,
        max_earning: Decimal | str | None = None,
        status: StakingStatus = StakingStatus.ACTIVE,
        created_at: datetime | None = None,
    ) -> StakingEntry:
        """Staking entry; on_staking of the wallet is raised by its amount."""
        package = get_package(package_id)
        amount = Decimal(amount) if amount is not None else package.amount
        if max_earning is None:
            max_earning = calculate_max_earning(amount, package.cap)
        created_at = created_at or utc_now()
        entry = StakingEntry(
            user_id=user.id,
            package_id=package.id,
            package_name=package.name,
            amount=amount,
            daily_roi=package.roi,
            cap=package.cap,
            max_earning=Decimal(max_earning),
            total_earned=Decimal(total_earned),
            status=status.value,
            start_date=created_at,
            created_at=created_at,
        )
        self.session.add(entry)
        balance = await self.balance(user)
        balance.on_staking += amount
        await self.session.commit()
        return entry

    async def voucher(
        self,
        user: User | None = None,
        value: Decimal | str | int = 100,
        voucher_type: VoucherType = VoucherType.PACKAGE,
        status: VoucherStatus = VoucherStatus.ACTIVE,
        expires_in: timedelta | None = timedelta(days=7),
        **fields,
    ) -> Voucher:
        """Voucher with a unique code."""
        n = next(self._seq)
        voucher = Voucher(
            code=f"V-TEST-{n:04d}",
            user_id=user.id if user else None,
            value=Decimal(value),
            type=voucher_type.value,
            title=fields.pop("title", f"Voucher {n}"),
            status=status.value,
            expires_at=utc_now() + expires_in if expires_in is not None else None,
            **fields,
        )
        self.session.add(voucher)
        await self.session.commit()
        return voucher

    async def update(self, model, row_id: int, **values) -> None:
        """Overwrite columns of an existing row."""
        await self.session.execute(update(model).where(model.id == row_id).values(**values))
        await self.session.commit()

    async def balance(self, user: User) -> UserBalance:
        """Reload a user's wallet row."""
        row = await self.session.get(UserBalance, await self._balance_id(user))
        await self.session.refresh(row)
        return row

    async def reload(self, model, row_id: int):
        """Fresh copy of a row as committed."""
        row = await self.session.get(model, row_id)
        await self.session.refresh(row)
        return row

    async def _balance_id(self, user: User) -> int:
        result = await self.session.execute(
            select(UserBalance.id).where(UserBalance.user_id == user.id)
        )
        return result.scalar_one()


@pytest_asyncio.fixture
async def factory(session_maker):
    """Row factory on its own session, unaffected by service rollbacks."""
    async with session_maker() as factory_session:
        yield DataFactory(factory_session)


@pytest_asyncio.fixture
async def file_session_maker(tmp_path):
    """Session factory on a file database, one connection per session."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'race.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    await engine.dispose()


@pytest_asyncio.fixture
async def file_factory(file_session_maker):
    """Row factory for the file database."""
    async with file_session_maker() as factory_session:
        yield DataFactory(factory_session)


class StatementLog:
    """SELECT statements issued on the test engine, in execution order."""

    def __init__(self) -> None:
        self.selects: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany) -> None:
        if statement.lstrip().upper().startswith("SELECT"):
            self.selects.append(statement)

    def clear(self) -> None:
        self.selects.clear()

    def first_index(self, fragment: str) -> int:
        """Position of the first SELECT containing the SQL fragment."""
        for index, statement in enumerate(self.selects):
            if fragment in statement:
                return index
        raise AssertionError(f"No SELECT containing {fragment!r}")


@pytest_asyncio.fixture
async def statement_log(engine):
    """Records SELECT statements while the test runs."""
    log = StatementLog()
    event.listen(engine.sync_engine, "before_cursor_execute", log)
    yield log
    event.remove(engine.sync_engine, "before_cursor_execute", log)

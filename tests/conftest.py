"""Shared fixtures: sample records and an in-memory SQLite database."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hybrid_filter.operators_memory import build_default_registry

from .models import (
    Account,
    AccountRecord,
    Badge,
    BadgeRecord,
    Base,
    Company,
    CompanyRecord,
    Department,
    DepartmentRecord,
    Employee,
    EmployeeRecord,
    Person,
    Squad,
    SquadRecord,
    Status,
    UserRecord,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
def registry():
    """Default in-memory operator registry."""
    return build_default_registry()


@pytest.fixture
def people() -> list[Person]:
    acme = Account(name="Acme Corp", tier=1)
    globex = Account(name="Globex", tier=2)
    return [
        Person(
            id=1,
            name="Alice",
            role="admin",
            age=34,
            active=True,
            created_at=datetime.datetime(2024, 2, 1, 9, 15),
            alarm=datetime.time(7, 0),
            account=acme,
            email="alice@example.com",
            status=Status.ACTIVE,
        ),
        Person(
            id=2,
            name="bob",
            role="user",
            age=27,
            active=False,
            created_at=datetime.datetime(2024, 2, 29, 23, 59, 59),
            alarm=datetime.time(6, 30),
            account=globex,
            status=Status.SUSPENDED,
        ),
        Person(
            id=3,
            name="Carol",
            role="Admin",
            age=None,
            active=True,
            created_at=datetime.datetime(2024, 3, 1, 0, 0),
            alarm=None,
            account=None,
            status=Status.PENDING,
        ),
        Person(
            id=4,
            name=None,
            role="guest",
            age=51,
            active=None,
            created_at=None,
            alarm=datetime.time(22, 45, 30),
            account=Account(name=None, tier=3),
        ),
        Person(
            id=5,
            name="Dave",
            role="ADMIN",
            age=27,
            active=True,
            created_at=datetime.datetime(2024, 1, 31, 23, 59),
            alarm=datetime.time(7, 0),
            account=acme,
            status=Status.ACTIVE,
        ),
    ]


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as s:
        yield s


@pytest.fixture
async def seeded(session: AsyncSession, people: list[Person]) -> AsyncSession:
    """Mirror ``people`` into the ``users``/``accounts`` tables."""
    accounts: dict[int, AccountRecord] = {}
    for person in people:
        account = None
        if person.account is not None:
            key = id(person.account)
            if key not in accounts:
                accounts[key] = AccountRecord(
                    id=len(accounts) + 1,
                    name=person.account.name,
                    tier=person.account.tier,
                )
            account = accounts[key]
        session.add(
            UserRecord(
                id=person.id,
                name=person.name,
                role=person.role,
                age=person.age,
                active=person.active,
                created_at=person.created_at,
                birthday=person.created_at.date() if person.created_at else None,
                alarm=person.alarm,
                email=person.email,
                status=person.status,
                account=account,
            )
        )
    await session.commit()
    return session


# ---------------------------------------------------------------------------
# Organisation chain: badge -> employee -> squad -> department -> company
# ---------------------------------------------------------------------------


@pytest.fixture
def badges() -> list[Badge]:
    tech = Company(name="TechCorp")
    other = Company(name="OtherCorp")
    platform = Squad(name="Platform", department=Department("Engineering", tech))
    payroll = Squad(name="Payroll", department=Department("Finance", other))
    return [
        Badge(id=1, employee=Employee(id=1, name="Ana", squad=platform)),
        Badge(id=2, employee=Employee(id=2, name="Ben", squad=payroll)),
    ]


@pytest.fixture
async def seeded_org(session: AsyncSession) -> AsyncSession:
    """Two badges whose employees work for different companies."""
    tech = CompanyRecord(id=1, name="TechCorp")
    other = CompanyRecord(id=2, name="OtherCorp")
    platform = SquadRecord(
        id=1,
        name="Platform",
        department=DepartmentRecord(id=1, name="Engineering", company=tech),
    )
    payroll = SquadRecord(
        id=2,
        name="Payroll",
        department=DepartmentRecord(id=2, name="Finance", company=other),
    )
    session.add_all(
        [
            BadgeRecord(
                id=1, employee=EmployeeRecord(id=1, name="Ana", squad=platform)
            ),
            BadgeRecord(
                id=2, employee=EmployeeRecord(id=2, name="Ben", squad=payroll)
            ),
        ]
    )
    await session.commit()
    return session

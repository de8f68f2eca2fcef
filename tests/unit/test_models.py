"""Timestamp columns and their round trip through the store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.models.database import (
    AppConfig,
    ScheduleEvent,
    Session,
    Tenant,
    User,
    _as_aware_utc,
    _utc_now,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.mark.unit
class TestTimestampHelpers:
    def test_now_is_aware_utc(self) -> None:
        assert _utc_now().tzinfo is UTC

    def test_naive_is_taken_as_utc(self) -> None:
        assert _as_aware_utc(datetime(2026, 5, 1, 14, 0)) == datetime(2026, 5, 1, 14, 0, tzinfo=UTC)

    def test_offset_is_converted(self) -> None:
        plus_two = datetime(2026, 5, 1, 16, 0, tzinfo=timezone(timedelta(hours=2)))
        converted = _as_aware_utc(plus_two)
        assert converted == datetime(2026, 5, 1, 14, 0, tzinfo=UTC)
        assert converted.tzinfo is UTC


@pytest.mark.unit
class TestTimestampColumns:
    def test_every_datetime_column_is_timezone_aware(self) -> None:
        columns = [
            column
            for table in SQLModel.metadata.sorted_tables
            for column in table.columns
            if isinstance(column.type, DateTime)
        ]
        assert columns
        naive = [f"{c.table.name}.{c.name}" for c in columns if not c.type.timezone]
        assert naive == []

    async def test_insert_and_read_back(self, async_engine: AsyncEngine) -> None:
        start = datetime(2026, 5, 1, 14, 0, tzinfo=UTC)
        async with AsyncSession(async_engine) as session:
            tenant = Tenant(id="abc123", title="Club")
            session.add(tenant)
            await session.flush()
            user = User(username="admin", password_hash="x", tenant_id=tenant.id)
            session.add(user)
            await session.flush()
            session.add(
                Session(id="t" * 16, user_id=user.id, expires_at=_utc_now() + timedelta(days=1))
            )
            session.add(ScheduleEvent(start_time=start, stop_time=start + timedelta(hours=2)))
            session.add(AppConfig(is_initialized=True, initialized_at=_utc_now()))
            await session.commit()

        async with AsyncSession(async_engine) as session:
            event = (await session.execute(select(ScheduleEvent))).scalars().one()
            assert _as_aware_utc(event.start_time) == start
            assert event.stop_time is not None
            assert _as_aware_utc(event.stop_time) - _as_aware_utc(event.start_time) == timedelta(
                hours=2
            )
            stored = (await session.execute(select(Session))).scalars().one()
            assert _as_aware_utc(stored.expires_at) > _utc_now()

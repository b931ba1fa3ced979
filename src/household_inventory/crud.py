"""Record level access to the primary structured store."""
from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import StateRecord


async def get_state_record(session: AsyncSession, key: str) -> StateRecord | None:
    stmt = select(StateRecord).where(StateRecord.key == key)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def put_state_record(
    session: AsyncSession, key: str, payload: dict[str, Any]
) -> StateRecord:
    record = await get_state_record(session, key)
    if record is None:
        record = StateRecord(key=key, payload=payload)
        session.add(record)
    else:
        record.payload = payload
    await session.flush()
    return record


async def delete_state_record(session: AsyncSession, key: str) -> bool:
    result = await session.execute(delete(StateRecord).where(StateRecord.key == key))
    await session.flush()
    return bool(result.rowcount)


__all__ = ["delete_state_record", "get_state_record", "put_state_record"]

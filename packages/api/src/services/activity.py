# This project was developed with assistance from AI tools.
"""Deal activity log.

Pipeline writes go through ``log_activity``, which never raises: a failed
activity write is logged and dropped so it cannot block ingestion. The
dashboard reads and appends through the session-based helpers below.
"""

import logging
from typing import Protocol

from db import ActivityLog
from db.enums import ActivityAction
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 50


class ActivitySink(Protocol):
    async def add_activity(self, deal_id: int, action: str, details: str | None): ...


async def log_activity(
    sink: ActivitySink,
    deal_id: int,
    action: ActivityAction | str,
    details: str | None = None,
) -> None:
    """Append an activity entry, swallowing and logging any failure."""
    action_value = action.value if isinstance(action, ActivityAction) else action
    try:
        await sink.add_activity(deal_id, action_value, details)
    except Exception:
        logger.warning(
            "Failed to log activity %s for deal %s", action_value, deal_id, exc_info=True
        )


async def list_activity(
    session: AsyncSession,
    deal_id: int,
    *,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> list[ActivityLog]:
    """Most recent activity entries for a deal, newest first."""
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.deal_id == deal_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_activity(
    session: AsyncSession,
    deal_id: int,
    action: str,
    details: str | None = None,
) -> ActivityLog:
    """Append a manual activity entry from the dashboard."""
    entry = ActivityLog(deal_id=deal_id, action=action, details=details)
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry

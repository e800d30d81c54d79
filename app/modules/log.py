from __future__ import annotations

import uuid

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.modules.audit.models import AuditLog


async def write_audit_log(
    session: AsyncSession,
    user_id: uuid.UUID | None,
    action: str,
    details: str | None = None,
):
    """
    Write an audit log entry.

    action:
        "POST /api/bookings COMMIT"
        "CREATE_SLOT"
        "RESERVE_BOOKING"
        "PARTIAL_TASK_CREATION_FAILURE"

    details:
        free text, e.g. the exception message on rollback
    """
    stmt = insert(AuditLog).values(
        id=uuid.uuid4(),
        user_id=user_id,
        action=action,
        details=details,
        timestamp=utcnow(),
    )
    await session.execute(stmt)

"""
Fire-and-forget notification writer.

Notifications are advisory: a failure is logged and reported as ``False``
but never propagates, so the primary write that triggered it stands.
Lost notifications are not retried.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    *,
    recipient_id: int,
    company_id: int,
    title: str,
    message: str,
    context: str,
    priority: str = "normal",
    reference_id: int | None = None,
    action_url: str | None = None,
) -> bool:
    try:
        async with db.begin_nested():
            db.add(
                Notification(
                    recipient_id=recipient_id,
                    company_id=company_id,
                    title=title,
                    message=message,
                    context=context,
                    priority=priority,
                    reference_id=reference_id,
                    action_url=action_url,
                )
            )
    except SQLAlchemyError as exc:
        logger.warning(
            "Notification '%s' for employee %s not created: %s", title, recipient_id, exc
        )
        return False
    return True

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.domain import NotificationLog
from app.schemas.dispatch import BatchOutcome


def record_outcome(
    db: Session,
    *,
    event_type: str,
    outcome: BatchOutcome,
    commit: bool = True,
) -> list[NotificationLog]:
    logs = []
    for result in outcome.results:
        log = NotificationLog(
            event_type=event_type,
            recipient=result.recipient[:50],
            address=result.address,
            success=result.success,
            message=(result.message or "")[:500],
            attempt_count=len(result.attempts),
        )
        db.add(log)
        logs.append(log)
    if commit:
        db.commit()
    else:
        db.flush()
    return logs


def list_recent(
    db: Session,
    *,
    limit: int = 50,
    event_type: str | None = None,
) -> list[NotificationLog]:
    stmt = select(NotificationLog).order_by(NotificationLog.id.desc()).limit(limit)
    if event_type:
        stmt = stmt.where(NotificationLog.event_type == event_type)
    return list(db.scalars(stmt).all())

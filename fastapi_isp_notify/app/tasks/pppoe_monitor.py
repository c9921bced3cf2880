from __future__ import annotations

import asyncio
import logging

from app.core.config import settings
from app.db.session import SessionLocal
from app.services.dispatch_service import NotificationDispatcher
from app.services.pppoe_notification_service import process_session_snapshot
from app.services.session_source import SessionSource, get_session_source
from app.services.transport import get_transport

logger = logging.getLogger(__name__)


def run_pppoe_monitor_job() -> None:
    if not settings.pppoe_monitor_enabled:
        return

    source = get_session_source()
    if source is None:
        logger.debug("PPPoE 세션 소스 미등록, 모니터링 건너뜀")
        return

    session = SessionLocal()
    try:
        dispatcher = NotificationDispatcher(get_transport())
        summary = asyncio.run(_poll(session, source, dispatcher))
        logger.debug(
            "PPPoE 모니터링 완료 (seeded=%s, logins=%s, logouts=%s)",
            summary.seeded,
            len(summary.logins),
            len(summary.logouts),
        )
    except Exception:  # noqa: BLE001
        session.rollback()
        logger.exception("PPPoE 모니터링 실패")
    finally:
        session.close()


async def _poll(session, source: SessionSource, dispatcher: NotificationDispatcher):
    active = await source.fetch_active()
    secret_names = await source.fetch_secret_names()
    return await process_session_snapshot(session, dispatcher, active, secret_names)

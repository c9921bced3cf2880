from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from sqlalchemy.orm import Session

from app.schemas.dispatch import BatchOutcome
from app.schemas.notifications import (
    NotificationOutcome,
    PppoeConnection,
    SessionSnapshotSummary,
)
from app.services import message_service, notification_log_service, recipient_service
from app.services.dispatch_service import DEFAULT_MAX_RETRIES, NotificationDispatcher
from app.services.settings_service import (
    PPPOE_STATE_KEY,
    get_pppoe_settings,
    get_state,
    save_state,
)

logger = logging.getLogger(__name__)

EVENT_LOGIN_BATCH = "pppoe.login.batch"
EVENT_LOGOUT_BATCH = "pppoe.logout.batch"
EVENT_LOGIN = "pppoe.login"
EVENT_LOGOUT = "pppoe.logout"
EVENT_BROADCAST = "broadcast"


async def send_batch_login_notification(
    db: Session,
    dispatcher: NotificationDispatcher,
    login_connections: Sequence[PppoeConnection],
    offline_users: Sequence[str] = (),
    *,
    now: datetime | None = None,
) -> NotificationOutcome:
    """여러 로그인 이벤트를 하나의 메시지로 묶어 관리자/기술자에게 발송."""
    config = get_pppoe_settings(db)
    if not config.enabled or not config.login_notifications:
        logger.info("PPPoE 로그인 알림 비활성화 상태")
        return NotificationOutcome(success=False, message="login notifications disabled")
    if not login_connections:
        return NotificationOutcome(success=False, message="no login connections")

    login_users = [connection.name for connection in login_connections]
    message = message_service.format_login_message(
        login_users,
        login_connections,
        offline_users,
        config,
        now,
    )
    return await _deliver(db, dispatcher, EVENT_LOGIN_BATCH, message)


async def send_batch_logout_notification(
    db: Session,
    dispatcher: NotificationDispatcher,
    logout_users: Sequence[str],
    offline_users: Sequence[str] = (),
    *,
    now: datetime | None = None,
) -> NotificationOutcome:
    config = get_pppoe_settings(db)
    if not config.enabled or not config.logout_notifications:
        logger.info("PPPoE 로그아웃 알림 비활성화 상태")
        return NotificationOutcome(success=False, message="logout notifications disabled")
    users = [name for name in logout_users if name]
    if not users:
        return NotificationOutcome(success=False, message="no logout connections")

    message = message_service.format_logout_message(users, offline_users, config, now)
    return await _deliver(db, dispatcher, EVENT_LOGOUT_BATCH, message)


async def send_login_notification(
    db: Session,
    dispatcher: NotificationDispatcher,
    connection: PppoeConnection,
    *,
    now: datetime | None = None,
) -> NotificationOutcome:
    config = get_pppoe_settings(db)
    if not config.enabled:
        return NotificationOutcome(success=False, message="notifications disabled")
    if not config.login_notifications:
        return NotificationOutcome(success=False, message="login notifications disabled")
    message = message_service.format_single_login(connection, now)
    return await _deliver(db, dispatcher, EVENT_LOGIN, message)


async def send_logout_notification(
    db: Session,
    dispatcher: NotificationDispatcher,
    connection: PppoeConnection,
    *,
    now: datetime | None = None,
) -> NotificationOutcome:
    config = get_pppoe_settings(db)
    if not config.enabled:
        return NotificationOutcome(success=False, message="notifications disabled")
    if not config.logout_notifications:
        return NotificationOutcome(success=False, message="logout notifications disabled")
    message = message_service.format_single_logout(connection, now)
    return await _deliver(db, dispatcher, EVENT_LOGOUT, message)


async def broadcast(
    db: Session,
    dispatcher: NotificationDispatcher,
    message: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> BatchOutcome:
    recipients = recipient_service.get_all_recipients(db)
    outcome = await dispatcher.dispatch_batch(recipients, message, max_retries)
    notification_log_service.record_outcome(db, event_type=EVENT_BROADCAST, outcome=outcome)
    return outcome


def detect_session_changes(
    previous_names: Sequence[str],
    current: Sequence[PppoeConnection],
) -> tuple[list[PppoeConnection], list[str]]:
    previous = set(previous_names)
    current_names = {connection.name for connection in current}
    logins = [connection for connection in current if connection.name not in previous]
    logouts = [name for name in previous_names if name not in current_names]
    return logins, logouts


async def process_session_snapshot(
    db: Session,
    dispatcher: NotificationDispatcher,
    active: Sequence[PppoeConnection],
    secret_names: Sequence[str] = (),
    *,
    now: datetime | None = None,
) -> SessionSnapshotSummary:
    """
    /ppp/active 스냅샷을 직전 상태와 비교해 로그인/로그아웃 알림을 보낸다.

    저장된 상태가 없으면 첫 스냅샷으로 간주하고 상태만 기록한다.
    """
    state = get_state(db, PPPOE_STATE_KEY, None)
    current_names = [connection.name for connection in active]
    save_state(db, PPPOE_STATE_KEY, {"last_active_users": current_names})

    if not isinstance(state, dict) or "last_active_users" not in state:
        logger.info("PPPoE 세션 상태 초기화 (active=%s)", len(current_names))
        return SessionSnapshotSummary(seeded=True)

    logins, logouts = detect_session_changes(state.get("last_active_users") or [], active)
    summary = SessionSnapshotSummary(
        logins=[connection.name for connection in logins],
        logouts=logouts,
    )
    if not logins and not logouts:
        return summary

    offline_users = message_service.compute_offline_users(secret_names, active)
    logger.info("PPPoE 세션 변화 감지: 로그인 %s, 로그아웃 %s", len(logins), len(logouts))
    if logins:
        summary.login_notification = await send_batch_login_notification(
            db, dispatcher, logins, offline_users, now=now
        )
    if logouts:
        summary.logout_notification = await send_batch_logout_notification(
            db, dispatcher, logouts, offline_users, now=now
        )
    return summary


async def _deliver(
    db: Session,
    dispatcher: NotificationDispatcher,
    event_type: str,
    message: str,
) -> NotificationOutcome:
    recipients = recipient_service.get_all_recipients(db)
    if not recipients:
        logger.info("알림 수신자가 없어 발송하지 않음 (%s)", event_type)
        return NotificationOutcome(success=False, message="no notification recipients")

    outcome = await dispatcher.dispatch_batch(recipients, message, DEFAULT_MAX_RETRIES)
    notification_log_service.record_outcome(db, event_type=event_type, outcome=outcome)
    logger.info(
        "%s 알림 %s/%s 수신자에게 발송",
        event_type,
        outcome.success_count,
        outcome.total_count,
    )
    return NotificationOutcome(success=True, outcome=outcome)

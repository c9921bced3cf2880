from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.core.config import settings
from app.db.session import get_db
from app.schemas.dispatch import BatchOutcome, RecipientValidation
from app.schemas.notifications import (
    BroadcastRequest,
    NotificationLogRead,
    NotificationOutcome,
    PppoeBatchRequest,
    PppoeConnection,
    PppoeNotificationSettings,
    PppoeNotificationSettingsUpdate,
    RecipientList,
    RecipientNumber,
    SessionSnapshotRequest,
    SessionSnapshotSummary,
    TransportStatus,
)
from app.services import notification_log_service, pppoe_notification_service, recipient_service
from app.services.dispatch_service import NotificationDispatcher
from app.services.settings_service import get_pppoe_settings, update_pppoe_settings
from app.services.transport import Transport, get_transport

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(deps.require_admin_token)],
)


@router.get("/pppoe/settings", response_model=PppoeNotificationSettings)
def read_pppoe_settings(db: Session = Depends(get_db)):
    return get_pppoe_settings(db)


@router.put("/pppoe/settings", response_model=PppoeNotificationSettings)
def update_pppoe_settings_endpoint(
    payload: PppoeNotificationSettingsUpdate,
    db: Session = Depends(get_db),
):
    """
    변경할 필드만 전달한다. monitor_interval 변경은 스케줄러 재시작 후 반영된다.
    """
    return update_pppoe_settings(db, payload)


@router.get("/recipients", response_model=RecipientList)
def list_recipients(db: Session = Depends(get_db)):
    return RecipientList(
        admins=recipient_service.get_admin_numbers(db),
        technicians=recipient_service.get_technician_numbers(db),
        all=recipient_service.get_all_recipients(db),
    )


@router.post("/recipients/admins", response_model=list[str], status_code=201)
def add_admin(payload: RecipientNumber, db: Session = Depends(get_db)):
    try:
        return recipient_service.add_admin_number(db, payload.number)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/recipients/admins/{number}", response_model=list[str])
def remove_admin(number: str, db: Session = Depends(get_db)):
    return recipient_service.remove_admin_number(db, number)


@router.post("/recipients/technicians", response_model=list[str], status_code=201)
def add_technician(payload: RecipientNumber, db: Session = Depends(get_db)):
    try:
        return recipient_service.add_technician_number(db, payload.number)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/recipients/technicians/{number}", response_model=list[str])
def remove_technician(number: str, db: Session = Depends(get_db)):
    return recipient_service.remove_technician_number(db, number)


@router.post("/recipients/validate", response_model=RecipientValidation)
async def validate_recipient(
    payload: RecipientNumber,
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    return await dispatcher.validate_recipient(payload.number)


@router.post("/broadcast", response_model=BatchOutcome)
async def broadcast_message(
    payload: BroadcastRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    """
    관리자+기술자 전체에게 동일 메시지를 발송한다. 수신자별 재시도 때문에 응답이 늦을 수 있다.
    """
    return await pppoe_notification_service.broadcast(
        db, dispatcher, payload.message, payload.max_retries
    )


@router.post("/pppoe/login", response_model=NotificationOutcome)
async def notify_login(
    payload: PppoeConnection,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    return await pppoe_notification_service.send_login_notification(db, dispatcher, payload)


@router.post("/pppoe/logout", response_model=NotificationOutcome)
async def notify_logout(
    payload: PppoeConnection,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    return await pppoe_notification_service.send_logout_notification(db, dispatcher, payload)


@router.post("/pppoe/login/batch", response_model=NotificationOutcome)
async def notify_login_batch(
    payload: PppoeBatchRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    return await pppoe_notification_service.send_batch_login_notification(
        db, dispatcher, payload.connections, payload.offline_users
    )


@router.post("/pppoe/logout/batch", response_model=NotificationOutcome)
async def notify_logout_batch(
    payload: PppoeBatchRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    return await pppoe_notification_service.send_batch_logout_notification(
        db,
        dispatcher,
        [connection.name for connection in payload.connections],
        payload.offline_users,
    )


@router.post("/pppoe/sessions", response_model=SessionSnapshotSummary)
async def push_session_snapshot(
    payload: SessionSnapshotRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
):
    """
    라우터 스크립트가 /ppp/active 스냅샷을 밀어 넣는 경로. 직전 스냅샷과 비교해 알림을 보낸다.
    """
    return await pppoe_notification_service.process_session_snapshot(
        db, dispatcher, payload.active, payload.secret_names
    )


@router.get("/transport", response_model=TransportStatus)
def transport_status(transport: Transport | None = Depends(get_transport)):
    return TransportStatus(
        provider=settings.whatsapp_provider,
        configured=transport is not None,
        connected=bool(transport and transport.is_available()),
    )


@router.post("/transport/connect", response_model=TransportStatus)
async def connect_transport(transport: Transport | None = Depends(get_transport)):
    if transport is None:
        raise HTTPException(status_code=400, detail="WhatsApp 전송 수단이 설정되지 않았습니다.")
    connected = await transport.connect()
    return TransportStatus(
        provider=settings.whatsapp_provider,
        configured=True,
        connected=connected,
    )


@router.get("/logs", response_model=list[NotificationLogRead])
def list_logs(
    limit: int = Query(default=50, ge=1, le=500),
    event_type: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    logs = notification_log_service.list_recent(db, limit=limit, event_type=event_type)
    return [NotificationLogRead.model_validate(log) for log in logs]

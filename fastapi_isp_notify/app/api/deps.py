from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.services.dispatch_service import NotificationDispatcher
from app.services.transport import Transport, get_transport


def require_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    expected = settings.admin_api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="ADMIN_API_TOKEN 이 설정되지 않았습니다.",
        )
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증이 필요합니다.")


def get_dispatcher(
    transport: Transport | None = Depends(get_transport),
) -> NotificationDispatcher:
    return NotificationDispatcher(transport)

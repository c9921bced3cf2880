from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.dispatch import BatchOutcome


class PppoeNotificationSettings(BaseModel):
    enabled: bool = True
    login_notifications: bool = True
    logout_notifications: bool = True
    include_offline_list: bool = True
    max_offline_list_count: int = Field(default=20, ge=1)
    monitor_interval: int = Field(default=60000, ge=1000, description="모니터 주기 (ms)")


class PppoeNotificationSettingsUpdate(BaseModel):
    enabled: bool | None = None
    login_notifications: bool | None = None
    logout_notifications: bool | None = None
    include_offline_list: bool | None = None
    max_offline_list_count: int | None = Field(default=None, ge=1)
    monitor_interval: int | None = Field(default=None, ge=1000)


class PppoeConnection(BaseModel):
    """MikroTik /ppp/active 항목 중 알림에 쓰는 필드."""

    name: str = Field(..., min_length=1)
    address: str | None = None
    uptime: str | None = None
    comment: str | None = None


class NotificationOutcome(BaseModel):
    success: bool
    message: str | None = None
    outcome: BatchOutcome | None = None


class PppoeBatchRequest(BaseModel):
    connections: list[PppoeConnection]
    offline_users: list[str] = Field(default_factory=list)


class SessionSnapshotRequest(BaseModel):
    active: list[PppoeConnection] = Field(default_factory=list)
    secret_names: list[str] = Field(default_factory=list)


class SessionSnapshotSummary(BaseModel):
    seeded: bool = False
    logins: list[str] = Field(default_factory=list)
    logouts: list[str] = Field(default_factory=list)
    login_notification: NotificationOutcome | None = None
    logout_notification: NotificationOutcome | None = None


class BroadcastRequest(BaseModel):
    message: str
    max_retries: int = 3


class RecipientNumber(BaseModel):
    number: str = Field(..., min_length=1, max_length=30)


class RecipientList(BaseModel):
    admins: list[str]
    technicians: list[str]
    all: list[str]


class TransportStatus(BaseModel):
    provider: str
    configured: bool
    connected: bool


class NotificationLogRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    event_type: str
    recipient: str
    address: str | None
    success: bool
    message: str | None
    attempt_count: int
    created_at: datetime | None

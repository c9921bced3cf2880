from __future__ import annotations

import copy
import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models.domain import AppSetting
from app.schemas.notifications import (
    PppoeNotificationSettings,
    PppoeNotificationSettingsUpdate,
)

logger = logging.getLogger(__name__)

PPPOE_SETTINGS_KEY = "pppoe_notifications"
PPPOE_STATE_KEY = "pppoe_state"


def deep_merge(defaults: dict, overrides: dict | None) -> dict:
    if overrides is None:
        return copy.deepcopy(defaults)
    result = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_json(db: Session, key: str, default: Any = None) -> Any:
    row = db.get(AppSetting, key)
    if row is None:
        return default
    try:
        return json.loads(row.value)
    except json.JSONDecodeError:
        logger.warning("설정 값 JSON 파싱 실패 (key=%s)", key)
        return default


def set_json(db: Session, key: str, value: Any, *, commit: bool = True) -> None:
    row = db.get(AppSetting, key)
    payload = json.dumps(value, ensure_ascii=False)
    if row is None:
        db.add(AppSetting(key=key, value=payload))
    else:
        row.value = payload
    if commit:
        db.commit()
    else:
        db.flush()


def get_pppoe_settings(db: Session) -> PppoeNotificationSettings:
    defaults = PppoeNotificationSettings().model_dump()
    saved = get_json(db, PPPOE_SETTINGS_KEY, None)
    merged = deep_merge(defaults, saved if isinstance(saved, dict) else {})
    return PppoeNotificationSettings.model_validate(merged)


def update_pppoe_settings(
    db: Session,
    changes: PppoeNotificationSettingsUpdate | dict,
) -> PppoeNotificationSettings:
    if isinstance(changes, dict):
        changes = PppoeNotificationSettingsUpdate.model_validate(changes)
    current = get_pppoe_settings(db).model_dump()
    current.update(changes.model_dump(exclude_none=True))
    updated = PppoeNotificationSettings.model_validate(current)
    set_json(db, PPPOE_SETTINGS_KEY, updated.model_dump())
    logger.info("PPPoE 알림 설정 저장: %s", updated.model_dump())
    return updated


def set_notification_status(db: Session, enabled: bool) -> PppoeNotificationSettings:
    return update_pppoe_settings(db, {"enabled": enabled})


def set_login_notifications(db: Session, enabled: bool) -> PppoeNotificationSettings:
    return update_pppoe_settings(db, {"login_notifications": enabled})


def set_logout_notifications(db: Session, enabled: bool) -> PppoeNotificationSettings:
    return update_pppoe_settings(db, {"logout_notifications": enabled})


def get_state(db: Session, key: str, default: Any) -> Any:
    return get_json(db, key, default)


def save_state(db: Session, key: str, state: Any) -> None:
    set_json(db, key, state)

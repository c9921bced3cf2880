from __future__ import annotations

import logging
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.domain import Technician
from app.services.settings_service import get_json, set_json

logger = logging.getLogger(__name__)

ADMINS_KEY = "admins"
TECHNICIAN_NUMBERS_KEY = "technician_numbers"


def get_admin_numbers(db: Session) -> List[str]:
    return _clean(get_json(db, ADMINS_KEY, []))


def add_admin_number(db: Session, number: str) -> List[str]:
    return _add_number(db, ADMINS_KEY, number)


def remove_admin_number(db: Session, number: str) -> List[str]:
    return _remove_number(db, ADMINS_KEY, number)


def get_technician_numbers(db: Session) -> List[str]:
    """
    활성 기술자 전화번호 (technicians 테이블) + 설정에 추가된 번호.
    """
    numbers: List[str] = []
    try:
        rows = db.execute(
            select(Technician.phone)
            .where(Technician.is_active.is_(True))
            .order_by(Technician.role, Technician.name)
        ).scalars().all()
        numbers.extend(rows)
        logger.info("활성 기술자 %s명 조회", len(rows))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("기술자 번호 조회 실패")
    numbers.extend(get_json(db, TECHNICIAN_NUMBERS_KEY, []) or [])
    return _dedupe(_clean(numbers))


def add_technician_number(db: Session, number: str) -> List[str]:
    return _add_number(db, TECHNICIAN_NUMBERS_KEY, number)


def remove_technician_number(db: Session, number: str) -> List[str]:
    return _remove_number(db, TECHNICIAN_NUMBERS_KEY, number)


def get_all_recipients(db: Session) -> List[str]:
    admins = get_admin_numbers(db)
    technicians = get_technician_numbers(db)
    recipients = _dedupe(admins + technicians)
    logger.info(
        "알림 수신자: 관리자 %s, 기술자 %s, 합계 %s",
        len(admins),
        len(technicians),
        len(recipients),
    )
    return recipients


def _add_number(db: Session, key: str, number: str) -> List[str]:
    value = (number or "").strip()
    if not value:
        raise ValueError("전화번호가 비어 있습니다.")
    numbers = _clean(get_json(db, key, []))
    if value not in numbers:
        numbers.append(value)
        set_json(db, key, numbers)
        logger.info("%s 번호 추가", key)
    return numbers


def _remove_number(db: Session, key: str, number: str) -> List[str]:
    value = (number or "").strip()
    numbers = _clean(get_json(db, key, []))
    remaining = [item for item in numbers if item != value]
    if len(remaining) != len(numbers):
        set_json(db, key, remaining)
        logger.info("%s 번호 삭제", key)
    return remaining


def _clean(values: Iterable[object] | None) -> List[str]:
    if not isinstance(values, (list, tuple)):
        return []
    cleaned: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        text = value.strip()
        if text:
            cleaned.append(text)
    return cleaned


def _dedupe(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))

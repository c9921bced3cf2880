from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.db.session import SessionLocal
from app.schemas.notifications import PppoeNotificationSettings
from app.services.settings_service import get_pppoe_settings
from app.tasks.pppoe_monitor import run_pppoe_monitor_job

logger = logging.getLogger(__name__)
_scheduler: BackgroundScheduler | None = None


def start_scheduler() -> None:
    global _scheduler
    if _scheduler is not None or not settings.scheduler_enabled:
        if not settings.scheduler_enabled:
            logger.info("스케줄러 비활성화 상태 (SCHEDULER_ENABLED=false)")
        return

    _scheduler = BackgroundScheduler(timezone=settings.timezone)
    if settings.pppoe_monitor_enabled:
        interval_ms = _load_monitor_interval()
        _scheduler.add_job(
            run_pppoe_monitor_job,
            IntervalTrigger(seconds=max(1, interval_ms // 1000)),
            id="pppoe_monitor",
            max_instances=1,
            replace_existing=True,
            coalesce=True,
        )
        logger.info("PPPoE 모니터 작업 등록 (interval=%sms)", interval_ms)

    _scheduler.start()
    logger.info("스케줄러 시작")


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("스케줄러 종료")
        _scheduler = None


def _load_monitor_interval() -> int:
    session = SessionLocal()
    try:
        return get_pppoe_settings(session).monitor_interval
    except SQLAlchemyError:
        logger.exception("PPPoE 설정 조회 실패, 기본 주기 사용")
        return PppoeNotificationSettings().monitor_interval
    finally:
        session.close()

"""프로세스 단위 로깅 설정."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path

from app.core.config import settings

_configured = False


def _build_config(level: str, log_dir: Path | None) -> dict:
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": level,
        },
    }
    if log_dir is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": str(log_dir / "isp_notify.log"),
            "encoding": "utf-8",
            "formatter": "standard",
            "level": level,
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": list(handlers),
        },
    }


def configure_logging() -> None:
    global _configured
    if _configured:
        return

    log_dir = Path(settings.log_dir) if settings.log_dir else None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(_build_config(settings.log_level, log_dir))
    logging.getLogger(__name__).debug("로깅 설정 완료 (level=%s)", settings.log_level)
    _configured = True

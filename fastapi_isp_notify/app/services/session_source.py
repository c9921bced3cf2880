from __future__ import annotations

import logging
from typing import List, Protocol

from app.schemas.notifications import PppoeConnection

logger = logging.getLogger(__name__)


class SessionSource(Protocol):
    """라우터(/ppp/active, /ppp/secret) 조회를 담당하는 호스트 측 구현."""

    async def fetch_active(self) -> List[PppoeConnection]:
        ...

    async def fetch_secret_names(self) -> List[str]:
        ...


_source: SessionSource | None = None


def register_session_source(source: SessionSource | None) -> None:
    global _source
    _source = source
    if source is None:
        logger.info("PPPoE 세션 소스 해제")
    else:
        logger.info("PPPoE 세션 소스 등록: %s", type(source).__name__)


def get_session_source() -> SessionSource | None:
    return _source

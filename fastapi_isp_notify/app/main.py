import logging

from fastapi import FastAPI

from app.api.routes import api_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.core.scheduler import shutdown_scheduler, start_scheduler
from app.services.transport import get_transport

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.include_router(api_router)


@app.on_event("startup")
async def _startup() -> None:
    transport = get_transport()
    if transport is None:
        logger.warning("WhatsApp 전송 수단 미설정 (WHATSAPP_PROVIDER=%s)", settings.whatsapp_provider)
    elif not await transport.connect():
        logger.warning("WhatsApp 전송 수단 연결 실패 (%s)", transport.name)
    start_scheduler()


@app.on_event("shutdown")
def _shutdown() -> None:
    shutdown_scheduler()


@app.get("/", tags=["health"])
async def root() -> dict[str, str]:
    return {"message": f"{settings.app_name} ready"}

from fastapi import APIRouter, Depends

from app.services.transport import Transport, get_transport

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/ping")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/whatsapp")
async def whatsapp(transport: Transport | None = Depends(get_transport)) -> dict[str, str | bool]:
    return {
        "provider": transport.name if transport else "none",
        "connected": bool(transport and transport.is_available()),
    }

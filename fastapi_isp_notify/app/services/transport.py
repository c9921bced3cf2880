from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict

import httpx

from app.core.config import Settings, settings
from app.core.phone import WHATSAPP_JID_SUFFIX, mask_phone, strip_suffix
from app.schemas.dispatch import ErrorKind

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """WhatsApp 전송 오류. kind 를 지정하면 문자열 분류보다 우선한다."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.payload = payload or {}


class Transport(ABC):
    name: str = "transport"
    address_suffix: str = ""

    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def send(self, address: str, body: str) -> str | None:
        """메시지를 보내고 벤더 메시지 ID 를 돌려준다. 실패 시 예외."""

    async def connect(self) -> bool:
        return self.is_available()

    def supports_lookup(self) -> bool:
        return False

    async def lookup(self, address: str) -> bool:
        raise NotImplementedError(f"{self.name} does not support number lookup")


class WhatsAppMetaTransport(Transport):
    """WhatsApp Cloud API (graph.facebook.com) 전송."""

    name = "meta"

    def __init__(
        self,
        *,
        api_key: str,
        phone_number_id: str,
        base_url: str = "https://graph.facebook.com/v18.0",
        timeout: float = 20.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.phone_number_id = phone_number_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http_transport = http_transport
        self.connected = False
        self.phone_number: str | None = None

    def is_available(self) -> bool:
        return self.connected

    async def connect(self) -> bool:
        url = f"{self.base_url}/{self.phone_number_id}"
        params = {
            "fields": "verified_name,display_phone_number",
            "access_token": self.api_key,
        }
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("WhatsApp Meta API 연결 실패: %s", exc)
            self.connected = False
            return False

        if data.get("verified_name"):
            self.connected = True
            self.phone_number = data.get("display_phone_number")
            logger.info("WhatsApp Meta API 연결됨: %s", data.get("verified_name"))
            return True
        self.connected = False
        return False

    def disconnect(self) -> None:
        self.connected = False
        self.phone_number = None
        logger.info("WhatsApp Meta API 연결 해제")

    async def send(self, address: str, body: str) -> str | None:
        to = strip_suffix(address)
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        url = f"{self.base_url}/{self.phone_number_id}/messages"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TransportError as exc:  # 네트워크/연결 오류
            raise TransportError(
                f"WhatsApp Meta API connection error: {exc}",
                kind=ErrorKind.CONNECTION,
            ) from exc

        data = _json_or_empty(response)
        if response.status_code >= 400:
            error = data.get("error") if isinstance(data.get("error"), dict) else {}
            raise TransportError(
                error.get("message") or f"WhatsApp Meta API HTTP error: {response.status_code}",
                status_code=response.status_code,
                payload=data,
            )

        messages = data.get("messages") or []
        if not messages or not messages[0].get("id"):
            raise TransportError("No message ID returned", payload=data)
        message_id = messages[0]["id"]
        logger.info("WhatsApp Meta API 발송 완료 (to=%s, id=%s)", mask_phone(to), message_id)
        return message_id

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.http_transport)


class WhatsAppGatewayTransport(Transport):
    """
    WhatsApp Web 세션을 감싼 HTTP 게이트웨이.

    GET /status → {"connected": bool}
    POST /send {"jid", "text"} → {"id": ...}
    POST /check {"jid"} → {"exists": bool}
    """

    name = "gateway"
    address_suffix = WHATSAPP_JID_SUFFIX

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 20.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http_transport = http_transport
        self.connected = False

    def is_available(self) -> bool:
        return self.connected

    async def connect(self) -> bool:
        try:
            data = await self._request("GET", "/status")
        except TransportError as exc:
            logger.error("WhatsApp 게이트웨이 상태 조회 실패: %s", exc)
            self.connected = False
            return False
        self.connected = bool(data.get("connected"))
        if not self.connected:
            logger.warning("WhatsApp 게이트웨이 세션이 연결되어 있지 않습니다.")
        return self.connected

    async def send(self, address: str, body: str) -> str | None:
        data = await self._request("POST", "/send", {"jid": address, "text": body})
        return data.get("id")

    def supports_lookup(self) -> bool:
        return True

    async def lookup(self, address: str) -> bool:
        data = await self._request("POST", "/check", {"jid": address})
        return bool(data.get("exists"))

    async def _request(
        self,
        method: str,
        path: str,
        payload: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        headers = {"X-Api-Key": self.api_key} if self.api_key else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.http_transport,
            ) as client:
                response = await client.request(method, path, json=payload, headers=headers)
        except httpx.TransportError as exc:
            raise TransportError(
                f"WhatsApp gateway connection error: {exc}",
                kind=ErrorKind.CONNECTION,
            ) from exc

        data = _json_or_empty(response)
        if response.status_code >= 400:
            raise TransportError(
                data.get("error") or f"WhatsApp gateway HTTP error: {response.status_code}",
                status_code=response.status_code,
                payload=data,
            )
        return data


def build_transport(config: Settings) -> Transport | None:
    if config.whatsapp_provider == "meta":
        if not config.whatsapp_meta_api_key or not config.whatsapp_meta_phone_number_id:
            logger.warning("WhatsApp Meta API 자격 증명이 없습니다 (API key / phone number id).")
            return None
        return WhatsAppMetaTransport(
            api_key=config.whatsapp_meta_api_key,
            phone_number_id=config.whatsapp_meta_phone_number_id,
            base_url=config.whatsapp_meta_base_url,
            timeout=config.whatsapp_http_timeout,
        )
    if config.whatsapp_provider == "gateway":
        if not config.whatsapp_gateway_url:
            logger.warning("WHATSAPP_GATEWAY_URL 이 설정되지 않았습니다.")
            return None
        return WhatsAppGatewayTransport(
            base_url=config.whatsapp_gateway_url,
            api_key=config.whatsapp_gateway_api_key,
            timeout=config.whatsapp_http_timeout,
        )
    return None


@lru_cache()
def get_transport() -> Transport | None:
    return build_transport(settings)


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from app.core.phone import mask_phone, to_address
from app.schemas.dispatch import (
    AttemptOutcome,
    BatchOutcome,
    DispatchAttempt,
    DispatchResult,
    ErrorKind,
    RecipientValidation,
)
from app.services.transport import Transport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
SEND_TIMEOUT_MS = 15000
VALIDATION_TIMEOUT_MS = 5000
VALIDATION_MAX_RETRIES = 2
RECIPIENT_PACING_MS = 1000
RETRY_DELAY_MS = 2000
CONNECTION_RETRY_DELAY_MS = 3000
VALIDATION_RETRY_DELAY_MS = 1000

MSG_SENT = "sent"
MSG_INVALID_RECIPIENT = "invalid recipient"
MSG_TRANSPORT_UNAVAILABLE = "transport unavailable"
MSG_EXHAUSTED = "exhausted all attempts"

Sleep = Callable[[float], Awaitable[None]]


def classify_error(error_message: str) -> ErrorKind:
    """WhatsApp 쪽 'Connection Closed' 류 오류는 connection 으로 분류."""
    lowered = (error_message or "").lower()
    if "connection" in lowered or "close" in lowered:
        return ErrorKind.CONNECTION
    return ErrorKind.OTHER


def backoff_ms(kind: ErrorKind, attempt: int) -> int:
    if kind == ErrorKind.CONNECTION:
        return CONNECTION_RETRY_DELAY_MS * attempt
    return RETRY_DELAY_MS * attempt


class NotificationDispatcher:
    """
    하나의 메시지를 여러 수신자에게 순차 발송한다.

    수신자별로 최대 max_retries 회 시도하며, 수신자 사이에는 고정 간격을 둔다.
    수신자 단위 실패는 모두 DispatchResult 로 반환되고 예외로 전파되지 않는다.
    """

    def __init__(self, transport: Transport | None, *, sleep: Sleep = asyncio.sleep) -> None:
        self.transport = transport
        self._sleep = sleep

    async def dispatch_batch(
        self,
        recipients: Sequence[str],
        message: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> BatchOutcome:
        results: list[DispatchResult] = []
        for index, recipient in enumerate(recipients):
            if index > 0:
                await self._wait(RECIPIENT_PACING_MS)
            try:
                result = await self.dispatch_one(recipient, message, max_retries)
            except Exception as exc:  # noqa: BLE001
                logger.exception("수신자 처리 중 예기치 못한 오류 (recipient=%s)", mask_phone(str(recipient)))
                result = DispatchResult(
                    recipient=str(recipient),
                    success=False,
                    message=str(exc) or type(exc).__name__,
                )
            results.append(result)

        success_count = sum(1 for result in results if result.success)
        logger.info("알림 발송 완료: %s/%s 성공", success_count, len(results))
        return BatchOutcome(
            results=results,
            success_count=success_count,
            total_count=len(recipients),
        )

    async def dispatch_one(
        self,
        recipient: str,
        message: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> DispatchResult:
        max_attempts = max(1, max_retries)
        address = to_address(recipient, self._address_suffix())
        if not address:
            logger.warning("유효하지 않은 수신자: %r", recipient)
            return DispatchResult(recipient=recipient, success=False, message=MSG_INVALID_RECIPIENT)

        masked = mask_phone(address)
        attempts: list[DispatchAttempt] = []
        for attempt in range(1, max_attempts + 1):
            is_last = attempt == max_attempts

            if not self._transport_ready():
                delay = 0 if is_last else RETRY_DELAY_MS * attempt
                attempts.append(
                    DispatchAttempt(
                        recipient=recipient,
                        attempt_number=attempt,
                        outcome=AttemptOutcome.FAILURE,
                        error_kind=ErrorKind.CONNECTION,
                        error_message=MSG_TRANSPORT_UNAVAILABLE,
                        backoff_ms=delay,
                    )
                )
                logger.warning("시도 %s/%s: WhatsApp 전송 수단 사용 불가 (%s)", attempt, max_attempts, masked)
                if is_last:
                    return self._failure(recipient, address, MSG_TRANSPORT_UNAVAILABLE, attempts)
                await self._wait(delay)
                continue

            error_kind: ErrorKind | None = None
            try:
                await asyncio.wait_for(
                    self.transport.send(address, message),
                    timeout=SEND_TIMEOUT_MS / 1000,
                )
            except asyncio.TimeoutError:
                error_message = f"WhatsApp send timeout after {SEND_TIMEOUT_MS}ms"
            except TransportError as exc:
                error_message = str(exc) or type(exc).__name__
                error_kind = exc.kind
            except Exception as exc:  # noqa: BLE001
                error_message = str(exc) or type(exc).__name__
            else:
                attempts.append(
                    DispatchAttempt(
                        recipient=recipient,
                        attempt_number=attempt,
                        outcome=AttemptOutcome.SUCCESS,
                    )
                )
                logger.info("메시지 발송 성공: %s (attempt %s)", masked, attempt)
                return DispatchResult(
                    recipient=recipient,
                    success=True,
                    message=MSG_SENT,
                    address=address,
                    attempts=attempts,
                )

            kind = error_kind or classify_error(error_message)
            delay = 0 if is_last else backoff_ms(kind, attempt)
            attempts.append(
                DispatchAttempt(
                    recipient=recipient,
                    attempt_number=attempt,
                    outcome=AttemptOutcome.FAILURE,
                    error_kind=kind,
                    error_message=error_message,
                    backoff_ms=delay,
                )
            )
            logger.warning(
                "시도 %s/%s: %s 발송 실패 (%s): %s",
                attempt,
                max_attempts,
                masked,
                kind.value,
                error_message,
            )
            if is_last:
                return self._failure(recipient, address, error_message, attempts)
            await self._wait(delay)

        return self._failure(recipient, address, MSG_EXHAUSTED, attempts)

    async def validate_recipient(self, recipient: str) -> RecipientValidation:
        """발송 전 번호가 WhatsApp 에 등록돼 있는지 조회한다 (lookup 지원 전송 수단만)."""
        address = to_address(recipient, self._address_suffix())
        if not address:
            return RecipientValidation(recipient=recipient, is_valid=False, error=MSG_INVALID_RECIPIENT)
        if not self._transport_ready():
            return RecipientValidation(
                recipient=recipient,
                is_valid=False,
                address=address,
                error=MSG_TRANSPORT_UNAVAILABLE,
            )
        if not self.transport.supports_lookup():
            return RecipientValidation(
                recipient=recipient,
                is_valid=False,
                address=address,
                error="lookup not supported",
            )

        error = MSG_EXHAUSTED
        for attempt in range(1, VALIDATION_MAX_RETRIES + 1):
            try:
                exists = await asyncio.wait_for(
                    self.transport.lookup(address),
                    timeout=VALIDATION_TIMEOUT_MS / 1000,
                )
            except asyncio.TimeoutError:
                error = f"WhatsApp lookup timeout after {VALIDATION_TIMEOUT_MS}ms"
            except Exception as exc:  # noqa: BLE001
                error = str(exc) or type(exc).__name__
            else:
                return RecipientValidation(
                    recipient=recipient,
                    is_valid=exists,
                    address=address,
                    error=None if exists else "not registered on WhatsApp",
                )
            logger.warning("번호 조회 실패 (attempt %s): %s", attempt, error)
            if attempt < VALIDATION_MAX_RETRIES:
                await self._wait(VALIDATION_RETRY_DELAY_MS * attempt)

        return RecipientValidation(recipient=recipient, is_valid=False, address=address, error=error)

    def _transport_ready(self) -> bool:
        transport = self.transport
        if transport is None or not callable(getattr(transport, "send", None)):
            return False
        try:
            return bool(transport.is_available())
        except Exception:  # noqa: BLE001
            logger.exception("전송 수단 상태 확인 실패")
            return False

    def _address_suffix(self) -> str:
        return getattr(self.transport, "address_suffix", "") or ""

    async def _wait(self, delay_ms: int) -> None:
        await self._sleep(delay_ms / 1000)

    @staticmethod
    def _failure(
        recipient: str,
        address: str,
        message: str,
        attempts: list[DispatchAttempt],
    ) -> DispatchResult:
        return DispatchResult(
            recipient=recipient,
            success=False,
            message=message,
            address=address,
            attempts=attempts,
        )

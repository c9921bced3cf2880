from __future__ import annotations

import re

COUNTRY_CODE = "62"
WHATSAPP_JID_SUFFIX = "@s.whatsapp.net"


def normalize_phone(phone: str | None) -> str | None:
    """
    숫자 이외 문자를 제거하고 인도네시아 국가번호(62) 형태로 맞춘다.

    - 0으로 시작하면 0을 62로 치환
    - 62로 시작하지 않으면 62를 앞에 붙임
    """
    if phone is None:
        return None
    digits = re.sub(r"\D", "", str(phone))
    if not digits:
        return None
    if digits.startswith("0"):
        return COUNTRY_CODE + digits[1:]
    if not digits.startswith(COUNTRY_CODE):
        return COUNTRY_CODE + digits
    return digits


def to_address(phone: str | None, suffix: str = "") -> str | None:
    digits = normalize_phone(phone)
    if not digits:
        return None
    return f"{digits}{suffix}"


def strip_suffix(address: str) -> str:
    return address.split("@", 1)[0]


def mask_phone(phone: str | None) -> str | None:
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    if not digits or len(digits) < 4:
        return "****"
    prefix = digits[:4]
    suffix = digits[-4:]
    return f"{prefix}****{suffix}"

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.schemas.notifications import PppoeConnection, PppoeNotificationSettings


def now_local() -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def format_timestamp(value: datetime) -> str:
    # id-ID 로케일 표기 (dd/mm/yyyy HH.MM.SS)
    return value.strftime("%d/%m/%Y %H.%M.%S")


def compute_offline_users(
    secret_names: Iterable[str],
    active_connections: Iterable[PppoeConnection | str],
) -> list[str]:
    active = {_connection_name(item) for item in active_connections}
    return [name for name in secret_names if name and name not in active]


def format_login_message(
    login_users: Sequence[str],
    login_connections: Sequence[PppoeConnection],
    offline_users: Sequence[str],
    config: PppoeNotificationSettings,
    now: datetime | None = None,
) -> str:
    by_name = {connection.name: connection for connection in login_connections}
    lines = ["🔔 *PPPoE LOGIN NOTIFICATION*", "", f"📊 *User Login ({len(login_users)}):*"]
    for index, username in enumerate(login_users, start=1):
        lines.append(f"{index}. *{username}*")
        connection = by_name.get(username)
        if connection is not None:
            if connection.address:
                lines.append(f"   • IP: {connection.address}")
            if connection.uptime:
                lines.append(f"   • Uptime: {connection.uptime}")
        lines.append("")

    if config.include_offline_list and offline_users:
        lines.append(f"🚫 *User Offline ({len(offline_users)}):*")
        lines.extend(_offline_lines(offline_users, config.max_offline_list_count))

    lines.append("")
    lines.append(f"⏰ {format_timestamp(now or now_local())}")
    return "\n".join(lines)


def format_logout_message(
    logout_users: Sequence[str],
    offline_users: Sequence[str],
    config: PppoeNotificationSettings,
    now: datetime | None = None,
) -> str:
    lines = ["🚪 *PPPoE LOGOUT NOTIFICATION*", "", f"📊 *User Logout ({len(logout_users)}):*"]
    for index, username in enumerate(logout_users, start=1):
        lines.append(f"{index}. *{username}*")

    if config.include_offline_list and offline_users:
        lines.append("")
        lines.append(f"🚫 *Total User Offline ({len(offline_users)}):*")
        lines.extend(_offline_lines(offline_users, config.max_offline_list_count))

    lines.append("")
    lines.append(f"⏰ {format_timestamp(now or now_local())}")
    return "\n".join(lines)


def format_single_login(connection: PppoeConnection, now: datetime | None = None) -> str:
    lines = [
        "🔔 *PPPoE LOGIN NOTIFICATION*",
        "",
        f"👤 *User:* {connection.name}",
        f"📍 *IP Address:* {connection.address or 'N/A'}",
        f"📈 *Uptime:* {connection.uptime or 'N/A'}",
    ]
    if connection.comment:
        lines.append(f"📝 *Comment:* {connection.comment}")
    lines.append("")
    lines.append(f"⏰ *Waktu:* {format_timestamp(now or now_local())}")
    return "\n".join(lines)


def format_single_logout(connection: PppoeConnection, now: datetime | None = None) -> str:
    lines = [
        "🚪 *PPPoE LOGOUT NOTIFICATION*",
        "",
        f"👤 *User:* {connection.name}",
    ]
    if connection.comment:
        lines.append(f"📝 *Comment:* {connection.comment}")
    lines.append("")
    lines.append(f"⏰ *Waktu:* {format_timestamp(now or now_local())}")
    return "\n".join(lines)


def _offline_lines(offline_users: Sequence[str], max_count: int) -> list[str]:
    shown = offline_users[:max_count]
    lines = [f"{index}. {name}" for index, name in enumerate(shown, start=1)]
    if len(offline_users) > max_count:
        lines.append(f"... dan {len(offline_users) - max_count} user lainnya")
    return lines


def _connection_name(item: PppoeConnection | str) -> str:
    if isinstance(item, str):
        return item
    return item.name

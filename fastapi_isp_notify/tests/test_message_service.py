from datetime import datetime

from app.schemas.notifications import PppoeConnection, PppoeNotificationSettings
from app.services.message_service import (
    compute_offline_users,
    format_login_message,
    format_logout_message,
    format_single_login,
    format_single_logout,
    format_timestamp,
)

NOW = datetime(2024, 3, 5, 7, 8, 9)


def test_format_timestamp():
    assert format_timestamp(NOW) == "05/03/2024 07.08.09"


def test_compute_offline_users():
    active = [PppoeConnection(name="andi"), "budi"]

    assert compute_offline_users(["andi", "budi", "cici", "", "dedi"], active) == ["cici", "dedi"]


def test_login_message_lists_users_and_offline():
    connections = [PppoeConnection(name="andi", address="10.0.0.2", uptime="5m")]
    config = PppoeNotificationSettings(max_offline_list_count=2)

    message = format_login_message(["andi", "budi"], connections, ["x", "y", "z"], config, NOW)

    assert message.startswith("🔔 *PPPoE LOGIN NOTIFICATION*")
    assert "📊 *User Login (2):*" in message
    assert "1. *andi*" in message
    assert "   • IP: 10.0.0.2" in message
    assert "   • Uptime: 5m" in message
    assert "2. *budi*" in message
    assert "🚫 *User Offline (3):*" in message
    assert "1. x\n2. y" in message
    assert "... dan 1 user lainnya" in message
    assert message.endswith("⏰ 05/03/2024 07.08.09")


def test_login_message_without_offline_list():
    config = PppoeNotificationSettings(include_offline_list=False)

    message = format_login_message(["andi"], [], ["x"], config, NOW)

    assert "User Offline" not in message


def test_logout_message():
    config = PppoeNotificationSettings()

    message = format_logout_message(["andi"], ["andi", "cici"], config, NOW)

    assert message.startswith("🚪 *PPPoE LOGOUT NOTIFICATION*")
    assert "📊 *User Logout (1):*" in message
    assert "🚫 *Total User Offline (2):*" in message
    assert "... dan" not in message


def test_single_messages():
    connection = PppoeConnection(name="andi", comment="Rumah Pak Andi")

    login = format_single_login(connection, NOW)
    logout = format_single_logout(PppoeConnection(name="budi"), NOW)

    assert "👤 *User:* andi" in login
    assert "📍 *IP Address:* N/A" in login
    assert "📝 *Comment:* Rumah Pak Andi" in login
    assert login.endswith("⏰ *Waktu:* 05/03/2024 07.08.09")
    assert "👤 *User:* budi" in logout
    assert "Comment" not in logout

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


def test_requires_admin_token(test_client):
    assert test_client.get("/notifications/pppoe/settings").status_code == 401
    response = test_client.get(
        "/notifications/pppoe/settings",
        headers={"X-Admin-Token": "wrong"},
    )
    assert response.status_code == 401


def test_health_is_public(test_client):
    assert test_client.get("/health/ping").json() == {"status": "ok"}
    assert test_client.get("/health/whatsapp").json() == {"provider": "fake", "connected": True}


def test_read_and_update_settings(test_client):
    response = test_client.get("/notifications/pppoe/settings", headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json()["monitor_interval"] == 60000

    response = test_client.put(
        "/notifications/pppoe/settings",
        json={"include_offline_list": False},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["include_offline_list"] is False
    assert response.json()["enabled"] is True

    response = test_client.put(
        "/notifications/pppoe/settings",
        json={"monitor_interval": 10},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 422


def test_manage_recipients(test_client):
    response = test_client.post(
        "/notifications/recipients/admins",
        json={"number": "081111111111"},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 201
    assert response.json() == ["081111111111"]

    test_client.post(
        "/notifications/recipients/technicians",
        json={"number": "082222222222"},
        headers=ADMIN_HEADERS,
    )
    response = test_client.get("/notifications/recipients", headers=ADMIN_HEADERS)
    assert response.json() == {
        "admins": ["081111111111"],
        "technicians": ["082222222222"],
        "all": ["081111111111", "082222222222"],
    }

    response = test_client.delete(
        "/notifications/recipients/admins/081111111111",
        headers=ADMIN_HEADERS,
    )
    assert response.json() == []

    response = test_client.post(
        "/notifications/recipients/admins",
        json={"number": "   "},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 400


def test_broadcast_and_logs(test_client, transport):
    test_client.post(
        "/notifications/recipients/admins",
        json={"number": "081111111111"},
        headers=ADMIN_HEADERS,
    )

    response = test_client.post(
        "/notifications/broadcast",
        json={"message": "Gangguan jaringan"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success_count"] == 1
    assert body["total_count"] == 1
    assert body["results"][0]["message"] == "sent"
    assert transport.calls[0]["body"] == "Gangguan jaringan"

    response = test_client.get(
        "/notifications/logs",
        params={"event_type": "broadcast"},
        headers=ADMIN_HEADERS,
    )
    logs = response.json()
    assert len(logs) == 1
    assert logs[0]["recipient"] == "081111111111"
    assert logs[0]["address"] == "6281111111111@s.whatsapp.net"
    assert logs[0]["attempt_count"] == 1


def test_session_snapshot_endpoint(test_client, transport):
    test_client.post(
        "/notifications/recipients/admins",
        json={"number": "081111111111"},
        headers=ADMIN_HEADERS,
    )

    first = test_client.post(
        "/notifications/pppoe/sessions",
        json={"active": [{"name": "andi"}], "secret_names": ["andi", "budi"]},
        headers=ADMIN_HEADERS,
    )
    assert first.json()["seeded"] is True

    second = test_client.post(
        "/notifications/pppoe/sessions",
        json={"active": [], "secret_names": ["andi", "budi"]},
        headers=ADMIN_HEADERS,
    )
    summary = second.json()
    assert summary["seeded"] is False
    assert summary["logouts"] == ["andi"]
    assert summary["logout_notification"]["success"] is True
    assert len(transport.calls) == 1


def test_login_batch_endpoint_without_recipients(test_client, transport):
    response = test_client.post(
        "/notifications/pppoe/login/batch",
        json={"connections": [{"name": "andi", "address": "10.0.0.2"}]},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "message": "no notification recipients",
        "outcome": None,
    }
    assert transport.calls == []


def test_transport_status(test_client):
    response = test_client.get("/notifications/transport", headers=ADMIN_HEADERS)

    assert response.json() == {"provider": "none", "configured": True, "connected": True}


def test_validate_recipient_endpoint(test_client):
    response = test_client.post(
        "/notifications/recipients/validate",
        json={"number": "081234567890"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["is_valid"] is False
    assert response.json()["error"] == "lookup not supported"

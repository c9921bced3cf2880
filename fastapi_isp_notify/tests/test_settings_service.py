from app.models.domain import AppSetting
from app.schemas.notifications import PppoeNotificationSettings
from app.services import settings_service
from app.services.settings_service import (
    PPPOE_SETTINGS_KEY,
    PPPOE_STATE_KEY,
    deep_merge,
    get_pppoe_settings,
    get_state,
    save_state,
    set_notification_status,
    update_pppoe_settings,
)


def test_defaults_when_nothing_stored(db_session):
    config = get_pppoe_settings(db_session)

    assert config == PppoeNotificationSettings()
    assert config.enabled is True
    assert config.login_notifications is True
    assert config.logout_notifications is True
    assert config.include_offline_list is True
    assert config.max_offline_list_count == 20
    assert config.monitor_interval == 60000


def test_partial_update_keeps_other_fields(db_session):
    update_pppoe_settings(db_session, {"logout_notifications": False, "max_offline_list_count": 5})

    config = get_pppoe_settings(db_session)
    assert config.logout_notifications is False
    assert config.max_offline_list_count == 5
    assert config.login_notifications is True


def test_stored_settings_are_merged_over_defaults(db_session):
    settings_service.set_json(db_session, PPPOE_SETTINGS_KEY, {"enabled": False})

    config = get_pppoe_settings(db_session)

    assert config.enabled is False
    assert config.monitor_interval == 60000


def test_corrupt_json_falls_back_to_default(db_session):
    db_session.add(AppSetting(key=PPPOE_SETTINGS_KEY, value="{not json"))
    db_session.commit()

    assert get_pppoe_settings(db_session) == PppoeNotificationSettings()


def test_toggle_helpers(db_session):
    config = set_notification_status(db_session, False)
    assert config.enabled is False

    config = settings_service.set_login_notifications(db_session, False)
    assert config.enabled is False
    assert config.login_notifications is False


def test_state_round_trip(db_session):
    assert get_state(db_session, PPPOE_STATE_KEY, None) is None

    save_state(db_session, PPPOE_STATE_KEY, {"last_active_users": ["andi", "budi"]})
    save_state(db_session, PPPOE_STATE_KEY, {"last_active_users": ["budi"]})

    assert get_state(db_session, PPPOE_STATE_KEY, None) == {"last_active_users": ["budi"]}


def test_deep_merge_nested():
    defaults = {"a": 1, "nested": {"x": 1, "y": 2}}

    merged = deep_merge(defaults, {"nested": {"y": 3}, "b": 2})

    assert merged == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}
    assert defaults == {"a": 1, "nested": {"x": 1, "y": 2}}
    assert deep_merge(defaults, None) == defaults

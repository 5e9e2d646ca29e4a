from feature_flags import (
    active_profile,
    get_feature,
    is_events_enabled,
    is_history_enabled,
    reload as reload_features,
)


def setup_function():
    reload_features()


def test_events_disabled_by_default():
    assert is_events_enabled({}, profile=None) is False
    assert is_events_enabled({}, profile="prod") is False


def test_events_enabled_for_dev_profile():
    assert is_events_enabled({}, profile="dev") is True


def test_events_can_be_overridden_via_env():
    assert is_events_enabled({"CLI_EVENTS_ENABLED": "1"}, profile="prod") is True
    assert is_events_enabled({"EVENTS_ENABLED": "off"}, profile="dev") is False
    assert is_events_enabled({"PUZZLE_EVENTS_ENABLED": "true"}) is True


def test_cli_override_wins_over_environment():
    env = {"CLI_EVENTS_ENABLED": "0", "PUZZLE_EVENTS_ENABLED": "1"}
    assert is_events_enabled(env, profile="dev") is False


def test_history_follows_profile():
    assert is_history_enabled({}, profile=None) is True
    assert is_history_enabled({}, profile="test") is False
    assert is_history_enabled({"PUZZLE_HISTORY_ENABLED": "yes"}, profile="test") is True


def test_profile_lookup():
    assert active_profile({"PUZZLE_PROFILE": " Dev "}) == "dev"
    assert active_profile({}) is None
    assert get_feature("events", "dev")["enabled"] is True
    assert get_feature("missing") == {}

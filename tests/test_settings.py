import json

import pytest

from backend import TIMER_TICK_INTERVAL, settings


def test_defaults_written_on_first_load():
    assert settings.get_value("default_category") == "daily-living"
    assert settings.SETTINGS_PATH.exists()
    with settings.SETTINGS_PATH.open() as fh:
        stored = json.load(fh)
    assert [item["key"] for item in stored] == [
        "default_category",
        "default_chaining_method",
        "timer_tick_interval",
    ]


def test_set_value_persists():
    settings.set_value("default_chaining_method", "backward")
    settings.clear_cache()
    assert settings.default_chaining_method() == "backward"


def test_set_value_validates_choices():
    with pytest.raises(ValueError):
        settings.set_value("default_category", "cooking")
    with pytest.raises(ValueError):
        settings.set_value("default_chaining_method", "sideways")
    assert settings.default_category() == "daily-living"


def test_unknown_key_is_appended():
    settings.set_value("theme", "dark")
    assert settings.get_value("theme") == "dark"
    assert settings.get_value("missing", 7) == 7


def test_corrupt_file_falls_back_to_defaults():
    settings.SETTINGS_PATH.write_text("{broken")
    assert settings.default_category() == "daily-living"
    assert settings.timer_tick_interval() == TIMER_TICK_INTERVAL


@pytest.mark.parametrize("value", [0, -1, "fast", None])
def test_bad_tick_interval_falls_back(value):
    settings.set_value("timer_tick_interval", value)
    assert settings.timer_tick_interval() == TIMER_TICK_INTERVAL

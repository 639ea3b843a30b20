from __future__ import annotations

import json

import pytest

from zeitblock.core.exceptions import SettingsError
from zeitblock.core.settings import Settings, SettingsManager


def test_missing_file_yields_defaults(tmp_path):
    settings = SettingsManager(tmp_path / "settings.json").load()

    assert settings.monitor_cron == "* * * * *"
    assert settings.warning_lead_minutes == 10


def test_save_and_update_round_trip(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.save(Settings(app_data_path=str(tmp_path), monitor_cron="*/5 * * * *", window_opacity=0.8))

    updated = manager.update(lambda current: Settings(**{**current.to_dict(), "always_on_top": True}))

    assert updated.always_on_top
    assert manager.load().monitor_cron == "*/5 * * * *"
    assert not (tmp_path / "settings.tmp").exists()


@pytest.mark.parametrize(
    "overrides",
    [{"monitor_cron": "every minute"}, {"warning_lead_minutes": 120}, {"window_opacity": 0.1}],
)
def test_invalid_values_are_rejected(tmp_path, overrides):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"app_data_path": str(tmp_path), **overrides}), encoding="utf-8")

    with pytest.raises(SettingsError):
        SettingsManager(path).load()


def test_malformed_file_is_a_settings_error(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(SettingsError):
        SettingsManager(path).load()


def test_export_dir_defaults_to_app_data(app_dir):
    assert Settings(app_data_path=str(app_dir)).resolved_export_dir() == app_dir / "exports"

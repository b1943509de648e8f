"""Tests for loading the calendar list."""

from __future__ import annotations

import pytest

import famcal.settings as settings
from famcal.config import DEFAULT_COLOR, load_config


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_normalizes_calendars(tmp_path):
    path = _write(
        tmp_path,
        """
calendars:
  - name: Family
    url: https://example.com/family.ics
    color: steelblue
  - name: School
    source: ./school.ics
    color: "#c60"
  - source: ./chores.ics
  - name: Broken
holiday_ics: ./holidays.ics
""",
    )
    config = load_config(path)
    assert config["calendars"] == [
        {"name": "Family", "source": "https://example.com/family.ics", "color": "#4682B4"},
        {"name": "School", "source": "./school.ics", "color": "#CC6600"},
        {"name": "./chores.ics", "source": "./chores.ics", "color": DEFAULT_COLOR},
    ]
    assert config["holiday_ics"] == "./holidays.ics"


def test_load_config_unknown_color_uses_default(tmp_path):
    path = _write(tmp_path, "calendars:\n  - name: X\n    source: x.ics\n    color: blurple\n")
    assert load_config(path)["calendars"][0]["color"] == DEFAULT_COLOR


def test_load_config_empty_file(tmp_path):
    config = load_config(_write(tmp_path, ""))
    assert config == {"calendars": [], "holiday_ics": None}


def test_load_config_default_path(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "CONFIG_PATH", _write(tmp_path, "calendars: []\n"))
    assert load_config()["calendars"] == []


def test_load_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

"""Tests for dashboard display preferences."""

import json

import pytest

from ui.preferences import (
    MASK,
    DisplayPreferences,
    format_currency,
    load_preferences,
    save_preferences,
)


class TestPersistence:
    def test_defaults_when_missing(self, tmp_path):
        prefs = load_preferences(tmp_path / "missing.json")
        assert prefs == DisplayPreferences(theme="light", balances_visible=True)

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        save_preferences(DisplayPreferences(theme="dark", balances_visible=False), path)
        assert load_preferences(path) == DisplayPreferences(theme="dark", balances_visible=False)

    def test_malformed_file_yields_defaults(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_preferences(path) == DisplayPreferences()

    def test_invalid_values_fall_back_per_field(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"theme": "neon", "balances_visible": False}), encoding="utf-8")
        assert load_preferences(path) == DisplayPreferences(theme="light", balances_visible=False)

    def test_toggles(self):
        prefs = DisplayPreferences()
        assert prefs.toggle_theme().theme == "dark"
        assert prefs.toggle_theme().toggle_theme().theme == "light"
        assert prefs.toggle_balances().balances_visible is False


class TestFormatCurrency:
    @pytest.mark.parametrize("amount,currency,expected", [
        (1234.5, "EUR", "€1,234.50"),
        (1234.5, "usd", "$1,234.50"),
        (-20.0, "EUR", "-€20.00"),
        (99.0, "SEK", "99.00 SEK"),
    ])
    def test_format(self, amount, currency, expected):
        assert format_currency(amount, currency) == expected

    def test_hidden_balances_masked(self):
        assert format_currency(1234.5, "EUR", visible=False) == MASK

    def test_none_amount(self):
        assert format_currency(None, "EUR") == "-"

    def test_default_currency(self):
        assert format_currency(1.0) == "€1.00"

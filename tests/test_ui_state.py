"""
Unit tests for session-state helpers that do not need a running script.
"""

from types import SimpleNamespace

from sportledger.ui import state


class TestSettingsWidgets:
    def test_selects_settings_editor_keys_only(self):
        keys = [
            "tax_rate_input",
            "sport_name_tennis",
            "lt_name_tennis_t-single",
            "price_tennis_t-single",
            "loc_name_tennis_sede-a",
            "cost_tennis_sede-a_t-single",
            state.KEY_SETTINGS_DRAFT,
            "lf_sport",
            "export_location",
        ]

        assert state.settings_widget_keys(keys) == keys[:6]

    def test_clear_drops_stale_widget_values(self, monkeypatch):
        session = {
            "tax_rate_input": 35.0,
            "sport_name_tennis": "Discarded name",
            "price_tennis_t-single": "99",
            state.KEY_SETTINGS_DRAFT: None,
            "lf_sport": "tennis",
        }
        monkeypatch.setattr(state, "st", SimpleNamespace(session_state=session))

        state.clear_settings_widgets()

        assert session == {state.KEY_SETTINGS_DRAFT: None, "lf_sport": "tennis"}

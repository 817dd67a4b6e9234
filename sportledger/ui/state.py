# sportledger/ui/state.py
import streamlit as st

from sportledger.utils.dates import shift_month, today_local

# Centralize keys to avoid typos across files
KEY_AUTHENTICATED = "authenticated"
KEY_CURRENT_MONTH = "current_month"
KEY_LESSONS_CACHE = "lessons_cache"
KEY_SETTINGS_CACHE = "settings_cache"
KEY_CACHE_READY = "cache_ready"
KEY_EDITING_LESSON_ID = "editing_lesson_id"
KEY_SETTINGS_DRAFT = "settings_draft"
KEY_EXPORT_BUSY = "export_busy"
KEY_EXPORT_RESULT = "export_result"


def init_state_if_missing() -> None:
    """Call at the top of the page before rendering widgets."""
    st.session_state.setdefault(KEY_CURRENT_MONTH, today_local().replace(day=1))
    st.session_state.setdefault(KEY_CACHE_READY, False)
    st.session_state.setdefault(KEY_EDITING_LESSON_ID, None)
    st.session_state.setdefault(KEY_SETTINGS_DRAFT, None)
    st.session_state.setdefault(KEY_EXPORT_BUSY, False)
    st.session_state.setdefault(KEY_EXPORT_RESULT, None)


def prev_month() -> None:
    st.session_state[KEY_CURRENT_MONTH] = shift_month(st.session_state[KEY_CURRENT_MONTH], -1)


def next_month() -> None:
    st.session_state[KEY_CURRENT_MONTH] = shift_month(st.session_state[KEY_CURRENT_MONTH], 1)


def start_edit(lesson_id: str) -> None:
    st.session_state[KEY_EDITING_LESSON_ID] = lesson_id


def stop_edit() -> None:
    st.session_state[KEY_EDITING_LESSON_ID] = None


def mark_cache_dirty() -> None:
    # next run reloads from the store ONCE
    st.session_state[KEY_CACHE_READY] = False


def set_export_busy() -> None:
    # on_click runs before the rerun, so the button renders disabled while exporting
    st.session_state[KEY_EXPORT_BUSY] = True
    st.session_state[KEY_EXPORT_RESULT] = None


# Settings editor widgets are keyed per sport / type / location
SETTINGS_WIDGET_PREFIXES = ("tax_rate_input", "sport_name_", "lt_name_", "price_", "loc_name_", "cost_")


def settings_widget_keys(keys) -> list[str]:
    return [k for k in keys if isinstance(k, str) and k.startswith(SETTINGS_WIDGET_PREFIXES)]


def clear_settings_widgets() -> None:
    # widgets then rebuild from the saved settings on the next run
    for key in settings_widget_keys(list(st.session_state.keys())):
        del st.session_state[key]

# sportledger/repositories/sheets_repo.py
import json
import logging
from typing import Optional

import pandas as pd
from gspread.exceptions import WorksheetNotFound

from sportledger.config import (
    LESSONS_HEADERS,
    LESSONS_TAB,
    SETTINGS_HEADERS,
    SETTINGS_KEY,
    SETTINGS_TAB,
)
from sportledger.models.defaults import default_settings
from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings, normalize_settings, settings_to_dict
from sportledger.utils.dates import now_utc_iso

logger = logging.getLogger(__name__)


# -----------------------------
# Sheet helpers
# -----------------------------
def get_or_create_worksheet(sh, tab_name: str, cache: Optional[dict] = None):
    """
    Worksheet handles are cached per (spreadsheet, tab) to avoid repeated
    fetch_sheet_metadata calls.
    """
    if cache is None:
        cache = {}
    key = (sh.id, tab_name)
    if key in cache:
        return cache[key]

    try:
        ws = sh.worksheet(tab_name)  # this triggers metadata read (expensive)
    except WorksheetNotFound:
        logger.info("Creating worksheet %s", tab_name)
        ws = sh.add_worksheet(title=tab_name, rows=1000, cols=max(len(LESSONS_HEADERS), 10))

    cache[key] = ws
    return ws


def ensure_headers(ws, headers):
    first_row = ws.row_values(1)
    if first_row != headers:
        ws.update(range_name="A1", values=[headers])


def _row(record: dict, headers: list[str]) -> list:
    return [record.get(h, "") for h in headers]


# -----------------------------
# Lessons
# -----------------------------
class SheetsLessonRepository:
    """One lesson per row of the Lessons tab, keyed by lesson_id in column A."""

    def __init__(self, spreadsheet, worksheet_cache: Optional[dict] = None):
        self.sh = spreadsheet
        self._cache = worksheet_cache if worksheet_cache is not None else {}
        self._headers_checked = False

    def _ws(self):
        ws = get_or_create_worksheet(self.sh, LESSONS_TAB, self._cache)
        if not self._headers_checked:
            ensure_headers(ws, LESSONS_HEADERS)
            self._headers_checked = True
        return ws

    def _find_row(self, ws, lesson_id: str) -> int:
        cell = ws.find(lesson_id, in_column=1)
        if cell is None:
            raise KeyError(f"Lesson not found: {lesson_id}")
        return cell.row

    def load_lessons_df(self) -> pd.DataFrame:
        records = self._ws().get_all_records()
        df = pd.DataFrame(records) if records else pd.DataFrame(columns=LESSONS_HEADERS)
        for c in LESSONS_HEADERS:
            if c not in df.columns:
                df[c] = ""
        df = df[LESSONS_HEADERS].copy()

        df["lesson_id"] = df["lesson_id"].astype(str).str.strip()
        df["date"] = pd.to_datetime(df["date"], errors="coerce").dt.date
        bad = df["lesson_id"].eq("") | df["date"].isna()
        if bad.any():
            logger.warning("Skipping %d unreadable lesson rows", int(bad.sum()))
        df = df[~bad]
        # a row edited twice by concurrent appends: keep the last one
        return df.drop_duplicates(subset="lesson_id", keep="last")

    def list_lessons(self) -> list[Lesson]:
        df = self.load_lessons_df()
        lessons = []
        for record in df.to_dict("records"):
            lesson = Lesson.from_record(record)
            if lesson is not None:
                lessons.append(lesson)
        return lessons

    def add_lesson(self, lesson: Lesson) -> Lesson:
        self._ws().append_row(_row(lesson.to_record(), LESSONS_HEADERS), value_input_option="RAW")
        logger.info("Added lesson %s (%s)", lesson.id, lesson.date.isoformat())
        return lesson

    def update_lesson(self, lesson: Lesson) -> Lesson:
        ws = self._ws()
        row = self._find_row(ws, lesson.id)
        ws.update(range_name=f"A{row}", values=[_row(lesson.to_record(), LESSONS_HEADERS)], raw=True)
        logger.info("Updated lesson %s", lesson.id)
        return lesson

    def delete_lesson(self, lesson_id: str) -> None:
        ws = self._ws()
        ws.delete_rows(self._find_row(ws, lesson_id))
        logger.info("Deleted lesson %s", lesson_id)

    def toggle_invoiced(self, lesson_id: str) -> Lesson:
        ws = self._ws()
        row = self._find_row(ws, lesson_id)
        lesson = Lesson.from_record(dict(zip(LESSONS_HEADERS, ws.row_values(row))))
        if lesson is None:
            raise KeyError(f"Lesson row {row} is unreadable")
        updated = lesson.with_invoiced(not lesson.invoiced)
        ws.update(range_name=f"A{row}", values=[_row(updated.to_record(), LESSONS_HEADERS)], raw=True)
        return updated


# -----------------------------
# Settings
# -----------------------------
class SheetsSettingsRepository:
    """The settings document lives as JSON in a single row of the Settings tab."""

    def __init__(self, spreadsheet, worksheet_cache: Optional[dict] = None):
        self.sh = spreadsheet
        self._cache = worksheet_cache if worksheet_cache is not None else {}

    def _ws(self):
        ws = get_or_create_worksheet(self.sh, SETTINGS_TAB, self._cache)
        ensure_headers(ws, SETTINGS_HEADERS)
        return ws

    def _find_row(self, ws) -> Optional[int]:
        cell = ws.find(SETTINGS_KEY, in_column=1)
        return cell.row if cell is not None else None

    def load_settings(self) -> Settings:
        ws = self._ws()
        row = self._find_row(ws)
        if row is None:
            settings = default_settings()
            logger.info("No settings document yet, seeding defaults")
            ws.append_row([SETTINGS_KEY, json.dumps(settings_to_dict(settings)), now_utc_iso()], value_input_option="RAW")
            return settings

        values = ws.row_values(row)
        raw = values[1] if len(values) > 1 else ""
        try:
            doc = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            logger.error("Settings document is not valid JSON, using empty settings")
            doc = {}
        return normalize_settings(doc)

    def save_settings(self, settings: Settings) -> Settings:
        ws = self._ws()
        values = [SETTINGS_KEY, json.dumps(settings_to_dict(settings), ensure_ascii=False), now_utc_iso()]
        row = self._find_row(ws)
        if row is None:
            ws.append_row(values, value_input_option="RAW")
        else:
            ws.update(range_name=f"A{row}", values=[values], raw=True)
        logger.info("Saved settings (%d sports)", len(settings.sports))
        return settings

# sportledger/config.py

APP_TITLE = "Gestione Contabilità"
TIMEZONE = "Europe/Rome"

# Label used wherever a sport / lesson type / location id no longer resolves
NOT_AVAILABLE = "N/D"
ALL = "all"

LESSONS_TAB = "Lessons"
LESSONS_HEADERS = [
    "lesson_id",
    "date",                # YYYY-MM-DD
    "sport_id",
    "lesson_type_id",
    "location_id",
    "price",               # decimal, captured at creation/edit time
    "cost",                # decimal, captured at creation/edit time
    "invoiced",            # TRUE / FALSE
    "created_at_utc",
    "updated_at_utc",
]

SETTINGS_TAB = "Settings"
SETTINGS_HEADERS = [
    "key",
    "document",            # JSON settings document
    "updated_at_utc",
]
SETTINGS_KEY = "main"

LOGGER_NAME = "sportledger"

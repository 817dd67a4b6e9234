from sportledger.models.settings import Settings, normalize_settings

TENNIS_ID = "tennis"
PADEL_ID = "padel"

TENNIS_SINGLE_ID = "t-single"
TENNIS_DOUBLE_ID = "t-double"
TENNIS_GROUP_ID = "t-group"

PADEL_DOUBLE_ID = "p-double"
PADEL_GROUP_ID = "p-group"

SEDE_A_ID = "sede-a"
SEDE_B_ID = "sede-b"
PADEL_CENTER_ID = "padel-center"

# Seeded into the store the first time, and used as-is in demo mode
DEFAULT_SETTINGS_DOC = {
    "sports": [
        {
            "id": TENNIS_ID,
            "name": "Tennis",
            "lessonTypes": [
                {"id": TENNIS_SINGLE_ID, "name": "Singola"},
                {"id": TENNIS_DOUBLE_ID, "name": "Doppia"},
                {"id": TENNIS_GROUP_ID, "name": "Gruppo Tennis"},
            ],
            "locations": [
                {"id": SEDE_A_ID, "name": "Sede Principale A"},
                {"id": SEDE_B_ID, "name": "Sede Secondaria B"},
            ],
            "prices": {TENNIS_SINGLE_ID: 30, TENNIS_DOUBLE_ID: 40, TENNIS_GROUP_ID: 60},
            "costs": {
                SEDE_A_ID: {TENNIS_SINGLE_ID: 10, TENNIS_DOUBLE_ID: 12, TENNIS_GROUP_ID: 15},
                SEDE_B_ID: {TENNIS_SINGLE_ID: 15, TENNIS_DOUBLE_ID: 18, TENNIS_GROUP_ID: 20},
            },
        },
        {
            "id": PADEL_ID,
            "name": "Padel",
            "lessonTypes": [
                {"id": PADEL_DOUBLE_ID, "name": "Partita Doppia"},
                {"id": PADEL_GROUP_ID, "name": "Lezione Gruppo"},
            ],
            "locations": [
                {"id": PADEL_CENTER_ID, "name": "Padel Center"},
            ],
            "prices": {PADEL_DOUBLE_ID: 35, PADEL_GROUP_ID: 55},
            "costs": {
                PADEL_CENTER_ID: {PADEL_DOUBLE_ID: 20, PADEL_GROUP_ID: 25},
            },
        },
    ],
    "taxRate": 0,
}


def default_settings() -> Settings:
    return normalize_settings(DEFAULT_SETTINGS_DOC)

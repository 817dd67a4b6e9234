# sportledger/services/secrets.py
import json
import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException


@dataclass(frozen=True)
class AppConfig:
    sheet_id: Optional[str]
    credentials: Optional[dict]
    app_password: Optional[str]
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        """Without a sheet id and service account the app runs in demo mode."""
        return bool(self.sheet_id and self.credentials)


def _secret(name: str):
    try:
        if name in st.secrets:
            return st.secrets[name]
    except (FileNotFoundError, StreamlitAPIException):
        # no secrets.toml: fall back to the environment
        pass
    return os.getenv(name)


def load_app_config() -> AppConfig:
    creds = _secret("GOOGLE_SHEETS_CREDENTIALS")
    if isinstance(creds, str):
        creds = json.loads(creds) if creds.strip() else None
    elif creds is not None:
        creds = dict(creds)

    return AppConfig(
        sheet_id=_secret("GOOGLE_SHEET_ID") or None,
        credentials=creds or None,
        app_password=_secret("APP_PASSWORD") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
    )

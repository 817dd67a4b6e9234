import logging

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials

from sportledger.services.secrets import load_app_config

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


# -----------------------------
# Google Sheets client (safe to cache)
# -----------------------------
@st.cache_resource
def get_gsheets_client():
    config = load_app_config()
    credentials = Credentials.from_service_account_info(config.credentials, scopes=SCOPES)
    return gspread.authorize(credentials)


@st.cache_resource
def get_spreadsheet():
    sheet_id = load_app_config().sheet_id
    logger.info("Opening spreadsheet %s", sheet_id)
    return get_gsheets_client().open_by_key(sheet_id)

"""
Swipe feedback collection and Google Sheets integration.
"""

import os
import csv
import logging
import uuid
import pandas as pd
import streamlit as st
import gspread
from datetime import datetime

from user_store import get_gsheet_client
from utils import get_secret

logger = logging.getLogger(__name__)

# File constants
FEEDBACK_FILE = "swipe_feedback.csv"
SESSION_MAP_FILE = "session_map.csv"
FEEDBACK_WORKSHEET = "swipe_feedback"

FEEDBACK_HEADERS = [
    "numeric_session_id",
    "session_id",
    "user_id",
    "movie_id",
    "movie_title",
    "movie_genres",
    "movie_year",
    "decision",
    "source",
    "timestamp"
]

DECISIONS = ("like", "dislike")


def initialize_feedback_csv():
    """Initialize the feedback CSV file with headers if it doesn't exist."""
    if not os.path.exists(FEEDBACK_FILE):
        with open(FEEDBACK_FILE, mode='w', newline='', encoding='utf-8') as file:
            writer = csv.writer(file)
            writer.writerow(FEEDBACK_HEADERS)


def get_or_create_numeric_session_id():
    """
    Get or create a numeric session ID for the current user session.

    Returns:
        Tuple of (numeric_id, session_id)
    """
    if not os.path.exists(SESSION_MAP_FILE):
        pd.DataFrame(columns=["numeric_session_id", "session_id"]).to_csv(SESSION_MAP_FILE, index=False)

    session_id = st.session_state.get("session_id", str(uuid.uuid4()))
    st.session_state["session_id"] = session_id

    df = pd.read_csv(SESSION_MAP_FILE)
    if session_id in df["session_id"].values:
        numeric_id = int(df[df["session_id"] == session_id]["numeric_session_id"].values[0])
    else:
        numeric_id = int(df["numeric_session_id"].max()) + 1 if not df.empty else 1
        new_entry = pd.DataFrame([[numeric_id, session_id]], columns=["numeric_session_id", "session_id"])
        df = pd.concat([df, new_entry], ignore_index=True)
        df.to_csv(SESSION_MAP_FILE, index=False)

    return numeric_id, session_id


def _feedback_row(numeric_id, session_id, user_id, movie, decision, source):
    if decision not in DECISIONS:
        raise ValueError(f"Unknown swipe decision: {decision}")
    return [
        int(numeric_id),
        str(session_id),
        str(user_id or ""),
        int(movie.id),
        str(movie.title),
        " | ".join(movie.genres),
        str(movie.year or ""),
        decision,
        str(source),
        datetime.utcnow().isoformat()
    ]


def save_feedback(numeric_id, session_id, user_id, movie, decision, source="swipe"):
    """
    Append one swipe decision to the local CSV log.

    Args:
        numeric_id: Numeric session id
        session_id: Session UUID
        user_id: Signed-in user id or empty for guests
        movie: Swiped Movie
        decision: "like" or "dislike"
        source: Where the card came from, e.g. "swipe" or "mood:feel-good"
    """
    row = _feedback_row(numeric_id, session_id, user_id, movie, decision, source)
    with open(FEEDBACK_FILE, mode='a', newline='', encoding='utf-8') as file:
        writer = csv.writer(file)
        writer.writerow(row)


def load_session_feedback(session_id):
    """
    Read this session's liked and disliked movie ids, oldest first.

    Returns:
        Tuple of (liked_ids, disliked_ids)
    """
    if not os.path.exists(FEEDBACK_FILE):
        return [], []

    df = pd.read_csv(FEEDBACK_FILE)
    if df.empty:
        return [], []

    rows = df[df["session_id"] == session_id]
    liked = rows[rows["decision"] == "like"]["movie_id"].astype(int).tolist()
    disliked = rows[rows["decision"] == "dislike"]["movie_id"].astype(int).tolist()
    return liked, disliked


def _feedback_worksheet(client):
    spreadsheet = client.open(get_secret("GSHEET_NAME", "moviemood"))
    try:
        return spreadsheet.worksheet(FEEDBACK_WORKSHEET)
    except gspread.exceptions.WorksheetNotFound:
        sheet = spreadsheet.add_worksheet(title=FEEDBACK_WORKSHEET, rows=1000, cols=len(FEEDBACK_HEADERS))
        sheet.append_row(FEEDBACK_HEADERS)
        return sheet


def record_feedback_to_sheet(numeric_id, session_id, user_id, movie, decision, source="swipe"):
    """
    Record a swipe decision to Google Sheets.

    Returns:
        Boolean indicating success
    """
    client = get_gsheet_client()
    if client is None:
        logger.warning("Google Sheets not configured; swipe feedback kept locally only")
        return False

    row = _feedback_row(numeric_id, session_id, user_id, movie, decision, source)
    try:
        _feedback_worksheet(client).append_row(row)
        return True
    except (gspread.exceptions.APIError, gspread.exceptions.SpreadsheetNotFound) as e:
        logger.error("Error saving swipe feedback to Google Sheets: %s", e)
        return False

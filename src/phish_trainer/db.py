"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from phish_trainer.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    current_day INTEGER NOT NULL DEFAULT 1,
    score INTEGER NOT NULL DEFAULT 1000 CHECK (score >= 0),
    is_completed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS emails (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES sessions(id),
    day INTEGER NOT NULL,
    sender TEXT NOT NULL,
    sender_email TEXT NOT NULL,
    subject TEXT NOT NULL,
    body TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    is_phishing INTEGER NOT NULL,
    phishing_type TEXT,
    difficulty_level INTEGER,
    indicators TEXT DEFAULT '[]',  -- JSON
    links TEXT DEFAULT '[]',  -- JSON
    has_attachment INTEGER DEFAULT 0,
    attachment_name TEXT,
    has_qr_code INTEGER DEFAULT 0,
    qr_code_url TEXT,
    has_calendar_invite INTEGER DEFAULT 0,
    calendar_details TEXT,  -- JSON
    is_threaded INTEGER DEFAULT 0,
    thread_emails TEXT,  -- JSON
    header_info TEXT  -- JSON
);

CREATE TABLE IF NOT EXISTS user_responses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES sessions(id),
    email_id INTEGER NOT NULL UNIQUE REFERENCES emails(id),
    reported_as_phishing INTEGER NOT NULL,
    selected_reasons TEXT DEFAULT '[]',  -- JSON
    is_correct INTEGER NOT NULL,
    points_earned INTEGER NOT NULL,
    responded_at TEXT
);

CREATE TABLE IF NOT EXISTS daily_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES sessions(id),
    day INTEGER NOT NULL,
    total_emails INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    false_positives INTEGER NOT NULL,
    false_negatives INTEGER NOT NULL,
    points_earned INTEGER NOT NULL,
    points_lost INTEGER NOT NULL,
    feedback TEXT,
    UNIQUE(session_id, day)
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()

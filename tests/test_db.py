"""Tests for database initialization and connection management."""
import sqlite3

import pytest

from phish_trainer.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {"sessions", "emails", "user_responses", "daily_results", "user_settings"}
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_settings (key, value) VALUES ('test', 'val')")
    row = conn.execute("SELECT key, value FROM user_settings WHERE key='test'").fetchone()
    assert row["key"] == "test"
    conn.close()


def test_score_cannot_go_negative(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO sessions (current_day, score) VALUES (1, -1)")
    conn.close()


def test_one_response_per_email(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO sessions (id) VALUES (1)")
    conn.execute(
        """INSERT INTO emails (id, session_id, day, sender, sender_email, subject, body, timestamp, is_phishing)
        VALUES (1, 1, 1, 's', 's@x.com', 'sub', 'body', '2024-01-01T00:00:00', 0)"""
    )
    insert = """INSERT INTO user_responses (session_id, email_id, reported_as_phishing, is_correct, points_earned)
        VALUES (1, 1, 0, 1, 25)"""
    conn.execute(insert)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(insert)
    conn.close()

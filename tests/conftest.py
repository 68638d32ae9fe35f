import json

import pytest

from phish_trainer.db import get_connection
from phish_trainer.generator import TemplateEmailGenerator
from phish_trainer.sessions import submit_response


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_trainer.db")
    return db_path


@pytest.fixture
def generator():
    return TemplateEmailGenerator(seed=42)


@pytest.fixture
def answer_day():
    """Answer every unanswered email of a day, right or wrong, using the stored ground truth."""
    def _answer(db_path, session_id, day, correct=True):
        conn = get_connection(db_path)
        rows = conn.execute(
            """SELECT e.id, e.is_phishing, e.indicators FROM emails e
            LEFT JOIN user_responses r ON r.email_id = e.id
            WHERE e.session_id = ? AND e.day = ? AND r.id IS NULL""",
            (session_id, day),
        ).fetchall()
        conn.close()
        results = []
        for row in rows:
            is_phishing = bool(row["is_phishing"])
            reported = is_phishing if correct else not is_phishing
            reasons = json.loads(row["indicators"]) if reported and is_phishing else []
            results.append(submit_response(db_path, row["id"], reported, reasons))
        return results
    return _answer

"""Session records, inbox storage and response submission."""
import json
import random
import sqlite3
from dataclasses import asdict
from datetime import datetime, timedelta

from phish_trainer.config import get_random_seed
from phish_trainer.curriculum import TOTAL_DAYS, build_batch_request, get_day_config
from phish_trainer.db import get_connection
from phish_trainer.errors import DuplicateResponse, EmailNotFound, IncompleteDay, SessionNotFound
from phish_trainer.generator import TemplateEmailGenerator
from phish_trainer.indicators import format_indicators, validate_indicators
from phish_trainer.logging_utils import get_logger
from phish_trainer.models import INITIAL_SCORE, GradedResponse, Session, UserResponse
from phish_trainer.scoring import (
    apply_score_delta, calculate_daily_stats, calculate_score, generate_overall_feedback,
)

EMAIL_SPACING = timedelta(minutes=15)

log = get_logger(__name__)


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_active_session_id(db_path: str) -> int | None:
    value = get_setting(db_path, "active_session_id")
    return int(value) if value else None


def default_generator() -> TemplateEmailGenerator:
    return TemplateEmailGenerator(seed=get_random_seed())


def shuffle_rng(generator) -> random.Random:
    """The generator's own RNG when it has one, so a single seed fixes the whole inbox."""
    rng = getattr(generator, "rng", None)
    return rng if rng is not None else random.Random(get_random_seed())


def build_day_emails(day: int, generator=None) -> list:
    """Ask the generator for the emails that fill a day's curriculum slots."""
    config = get_day_config(day)
    generator = generator or default_generator()
    log.info(
        "Day %d: generating %d emails (%d phishing, %d legitimate)",
        day, config.total_emails, config.phishing_count, config.legitimate_count,
    )
    return generator.generate_batch(build_batch_request(config))


def insert_day_emails(conn: sqlite3.Connection, session_id: int, day: int, emails: list, rng=None) -> None:
    """Shuffle a day's emails and store them 15 minutes apart, newest first."""
    emails = list(emails)
    (rng or random.Random(get_random_seed())).shuffle(emails)
    now = datetime.now()
    for i, email in enumerate(emails):
        conn.execute(
            """INSERT INTO emails (
                session_id, day, sender, sender_email, subject, body, timestamp,
                is_phishing, phishing_type, difficulty_level, indicators, links,
                has_attachment, attachment_name, has_qr_code, qr_code_url,
                has_calendar_invite, calendar_details, is_threaded, thread_emails, header_info
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session_id, day, email.sender, email.sender_email, email.subject, email.body,
                (now - i * EMAIL_SPACING).isoformat(),
                int(email.is_phishing), email.phishing_type, email.difficulty_level,
                json.dumps(list(email.indicators)),
                json.dumps([asdict(link) for link in email.links]),
                int(email.has_attachment), email.attachment_name,
                int(email.has_qr_code), email.qr_code_url,
                int(email.has_calendar_invite),
                json.dumps(email.calendar_details) if email.has_calendar_invite else None,
                int(email.is_threaded),
                json.dumps(email.thread_emails) if email.is_threaded else None,
                json.dumps(asdict(email.header_info)) if email.header_info else None,
            ),
        )


def create_session(db_path: str, generator=None) -> dict:
    """Start a brand-new simulation at day 1 and make it the active one."""
    generator = generator or default_generator()
    emails = build_day_emails(1, generator)
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO sessions (current_day, score, is_completed, created_at) VALUES (1, ?, 0, ?)",
        (INITIAL_SCORE, datetime.now().isoformat()),
    )
    session_id = cur.lastrowid
    insert_day_emails(conn, session_id, 1, emails, shuffle_rng(generator))
    conn.commit()
    conn.close()
    set_setting(db_path, "active_session_id", str(session_id))
    log.info("Created session %d", session_id, extra={"session_id": session_id, "day": 1})
    return {"session_id": session_id, "current_day": 1, "score": INITIAL_SCORE}


def _session_from_row(row) -> Session:
    return Session(
        id=row["id"],
        current_day=row["current_day"],
        score=row["score"],
        is_completed=bool(row["is_completed"]),
    )


def load_session(db_path: str, session_id: int) -> Session:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,)).fetchone()
    conn.close()
    if row is None:
        raise SessionNotFound(session_id)
    return _session_from_row(row)


def count_day_progress(conn: sqlite3.Connection, session_id: int, day: int) -> tuple[int, int]:
    """Return (total emails, answered emails) for one day of a session."""
    row = conn.execute(
        """SELECT COUNT(e.id) as total, COUNT(r.id) as answered
        FROM emails e
        LEFT JOIN user_responses r ON r.email_id = e.id
        WHERE e.session_id = ? AND e.day = ?""",
        (session_id, day),
    ).fetchone()
    return row["total"], row["answered"]


def ensure_day_complete(conn: sqlite3.Connection, session_id: int, day: int) -> int:
    """Raise IncompleteDay unless every email of the day has a response."""
    total, answered = count_day_progress(conn, session_id, day)
    if total == 0 or answered < total:
        raise IncompleteDay(day, total - answered)
    return total


def get_session(db_path: str, session_id: int) -> dict:
    session = load_session(db_path, session_id)
    conn = get_connection(db_path)
    total, answered = count_day_progress(conn, session_id, session.current_day)
    conn.close()
    return {
        **asdict(session),
        "emails_remaining": total - answered,
        "all_emails_reviewed": total > 0 and answered == total,
    }


def _decode_email(row) -> dict:
    return {
        "id": row["id"],
        "day": row["day"],
        "sender": row["sender"],
        "sender_email": row["sender_email"],
        "subject": row["subject"],
        "body": row["body"],
        "timestamp": row["timestamp"],
        "has_attachment": bool(row["has_attachment"]),
        "attachment_name": row["attachment_name"],
        "has_qr_code": bool(row["has_qr_code"]),
        "qr_code_url": row["qr_code_url"],
        "has_calendar_invite": bool(row["has_calendar_invite"]),
        "calendar_details": json.loads(row["calendar_details"]) if row["calendar_details"] else None,
        "is_threaded": bool(row["is_threaded"]),
        "thread_emails": json.loads(row["thread_emails"]) if row["thread_emails"] else [],
        "links": json.loads(row["links"]) if row["links"] else [],
        "header_info": json.loads(row["header_info"]) if row["header_info"] else None,
        "is_read": row["response_id"] is not None,
        "is_reported": bool(row["reported_as_phishing"]),
    }


_EMAIL_SELECT = """SELECT e.*, r.id as response_id, r.reported_as_phishing
    FROM emails e
    LEFT JOIN user_responses r ON r.email_id = e.id"""


def get_emails_for_day(db_path: str, session_id: int, day: int) -> list[dict]:
    """The day's inbox, newest first. Ground truth is never included."""
    conn = get_connection(db_path)
    rows = conn.execute(
        _EMAIL_SELECT + " WHERE e.session_id = ? AND e.day = ? ORDER BY e.timestamp DESC",
        (session_id, day),
    ).fetchall()
    conn.close()
    return [_decode_email(r) for r in rows]


def get_email(db_path: str, email_id: int) -> dict | None:
    conn = get_connection(db_path)
    row = conn.execute(_EMAIL_SELECT + " WHERE e.id = ?", (email_id,)).fetchone()
    conn.close()
    return _decode_email(row) if row else None


def submit_response(
    db_path: str,
    email_id: int,
    reported_as_phishing: bool,
    selected_reasons: list | None = None,
) -> dict:
    """Grade and store the single allowed response to an email.

    The response insert and the clamped score update run under one write
    lock, so concurrent submissions for a session cannot lose updates.
    """
    response = UserResponse(reported_as_phishing, validate_indicators(selected_reasons or []))
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        email = conn.execute("SELECT * FROM emails WHERE id = ?", (email_id,)).fetchone()
        if email is None:
            raise EmailNotFound(email_id)
        existing = conn.execute(
            "SELECT id FROM user_responses WHERE email_id = ?", (email_id,)
        ).fetchone()
        if existing:
            log.warning("Rejected second response to email %s", email_id, extra={"email_id": email_id})
            raise DuplicateResponse(email_id)

        is_phishing = bool(email["is_phishing"])
        actual = json.loads(email["indicators"] or "[]")
        result = calculate_score(is_phishing, response.reported_as_phishing, actual, response.selected_reasons)
        net_points = result.net_points

        conn.execute(
            """INSERT INTO user_responses
            (session_id, email_id, reported_as_phishing, selected_reasons, is_correct, points_earned, responded_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                email["session_id"], email_id, int(response.reported_as_phishing), json.dumps(response.selected_reasons),
                int(result.is_correct), net_points, datetime.now().isoformat(),
            ),
        )
        score = conn.execute(
            "SELECT score FROM sessions WHERE id = ?", (email["session_id"],)
        ).fetchone()["score"]
        new_score = apply_score_delta(score, net_points)
        conn.execute("UPDATE sessions SET score = ? WHERE id = ?", (new_score, email["session_id"]))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    return {
        "is_correct": result.is_correct,
        "points_earned": net_points,
        "new_score": new_score,
        "actual_indicators": actual if is_phishing else None,
        "was_phishing": is_phishing,
        "feedback": result.feedback,
    }


def _breakdown_feedback(was_phishing: bool, is_correct: bool, indicators: list) -> str:
    if is_correct:
        return "Correctly identified as phishing!" if was_phishing else "Correctly identified as legitimate."
    if was_phishing:
        return f"Missed phishing email. Key indicators: {format_indicators(indicators)}"
    return "This was a legitimate email. Be careful not to over-report."


def get_daily_summary(db_path: str, session_id: int, day: int) -> dict:
    """Aggregate a finished day, store its daily_results row and return the summary."""
    get_day_config(day)
    session = load_session(db_path, session_id)
    conn = get_connection(db_path)
    try:
        ensure_day_complete(conn, session_id, day)
        rows = conn.execute(
            """SELECT e.id, e.subject, e.is_phishing, e.indicators,
                r.reported_as_phishing, r.selected_reasons, r.is_correct, r.points_earned
            FROM emails e
            JOIN user_responses r ON r.email_id = e.id
            WHERE e.session_id = ? AND e.day = ?
            ORDER BY e.timestamp DESC""",
            (session_id, day),
        ).fetchall()

        stats = calculate_daily_stats([
            GradedResponse(
                is_correct=bool(r["is_correct"]),
                points_earned=r["points_earned"],
                was_phishing=bool(r["is_phishing"]),
                reported_as_phishing=bool(r["reported_as_phishing"]),
            )
            for r in rows
        ])
        feedback = generate_overall_feedback(
            stats.correct_answers, stats.total_emails, stats.false_positives, stats.false_negatives,
        )
        conn.execute(
            """INSERT INTO daily_results
            (session_id, day, total_emails, correct_answers, false_positives, false_negatives,
             points_earned, points_lost, feedback)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(session_id, day) DO UPDATE SET
                total_emails=excluded.total_emails,
                correct_answers=excluded.correct_answers,
                false_positives=excluded.false_positives,
                false_negatives=excluded.false_negatives,
                points_earned=excluded.points_earned,
                points_lost=excluded.points_lost,
                feedback=excluded.feedback""",
            (
                session_id, day, stats.total_emails, stats.correct_answers, stats.false_positives,
                stats.false_negatives, stats.points_earned, stats.points_lost, feedback,
            ),
        )
        conn.commit()
    finally:
        conn.close()

    breakdown = []
    for r in rows:
        indicators = json.loads(r["indicators"] or "[]")
        breakdown.append({
            "email_id": r["id"],
            "subject": r["subject"],
            "was_phishing": bool(r["is_phishing"]),
            "user_reported_phishing": bool(r["reported_as_phishing"]),
            "is_correct": bool(r["is_correct"]),
            "indicators": indicators,
            "user_selected_reasons": json.loads(r["selected_reasons"] or "[]"),
            "feedback": _breakdown_feedback(bool(r["is_phishing"]), bool(r["is_correct"]), indicators),
        })

    return {
        "day": day,
        **asdict(stats),
        "final_score": session.score,
        "email_breakdown": breakdown,
        "overall_feedback": feedback,
        "is_simulation_complete": day >= TOTAL_DAYS,
    }

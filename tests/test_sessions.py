# tests/test_sessions.py
import json

import pytest

from phish_trainer.db import init_db, get_connection
from phish_trainer.errors import (
    DuplicateResponse, EmailNotFound, IncompleteDay, InvalidDay, SessionNotFound,
)
from phish_trainer.generator import TemplateEmailGenerator
from phish_trainer.sessions import (
    create_session, get_active_session_id, get_daily_summary, get_email,
    get_emails_for_day, get_session, get_setting, load_session, set_setting, shuffle_rng,
    submit_response,
)


def _email_ids(db_path, session_id, day, is_phishing):
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT id, indicators FROM emails WHERE session_id = ? AND day = ? AND is_phishing = ?",
        (session_id, day, int(is_phishing)),
    ).fetchall()
    conn.close()
    return [(r["id"], json.loads(r["indicators"])) for r in rows]


def test_settings_round_trip(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "missing", "x") == "x"
    set_setting(tmp_db, "k", "1")
    set_setting(tmp_db, "k", "2")
    assert get_setting(tmp_db, "k") == "2"


def test_create_session(tmp_db, generator):
    init_db(tmp_db)
    created = create_session(tmp_db, generator)
    assert created["current_day"] == 1
    assert created["score"] == 1000
    assert get_active_session_id(tmp_db) == created["session_id"]
    emails = get_emails_for_day(tmp_db, created["session_id"], 1)
    assert len(emails) == 3
    assert len(_email_ids(tmp_db, created["session_id"], 1, True)) == 1


def test_new_session_starts_fresh(tmp_db, generator, answer_day):
    init_db(tmp_db)
    first = create_session(tmp_db, generator)["session_id"]
    answer_day(tmp_db, first, 1)
    second = create_session(tmp_db, generator)["session_id"]
    assert second != first
    session = get_session(tmp_db, second)
    assert session["current_day"] == 1
    assert session["score"] == 1000
    assert session["emails_remaining"] == 3
    assert get_active_session_id(tmp_db) == second


def test_emails_hide_ground_truth_and_decode_json(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    emails = get_emails_for_day(tmp_db, session_id, 1)
    for email in emails:
        assert "is_phishing" not in email
        assert "indicators" not in email
        assert isinstance(email["links"], list)
        assert isinstance(email["header_info"], dict)
        assert email["is_read"] is False
        assert email["is_reported"] is False


def test_emails_are_spaced_newest_first(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    stamps = [e["timestamp"] for e in get_emails_for_day(tmp_db, session_id, 1)]
    assert stamps == sorted(stamps, reverse=True)
    assert len(set(stamps)) == len(stamps)


def _day_subjects(db_path, session_id, day):
    return tuple(e["subject"] for e in get_emails_for_day(db_path, session_id, day))


def test_same_seed_gives_same_inbox_order(tmp_db):
    init_db(tmp_db)
    orders = set()
    for _ in range(10):
        session_id = create_session(tmp_db, TemplateEmailGenerator(seed=7))["session_id"]
        orders.add(_day_subjects(tmp_db, session_id, 1))
    assert len(orders) == 1


def test_env_seed_fixes_default_inbox_order(tmp_db, monkeypatch):
    monkeypatch.setenv("PHISH_TRAINER_SEED", "7")
    init_db(tmp_db)
    orders = set()
    for _ in range(10):
        session_id = create_session(tmp_db)["session_id"]
        orders.add(_day_subjects(tmp_db, session_id, 1))
    assert len(orders) == 1


def test_shuffle_rng(monkeypatch):
    generator = TemplateEmailGenerator(seed=1)
    assert shuffle_rng(generator) is generator.rng
    monkeypatch.setenv("PHISH_TRAINER_SEED", "5")
    assert shuffle_rng(object()).random() == shuffle_rng(object()).random()


def test_get_session_unknown(tmp_db):
    init_db(tmp_db)
    with pytest.raises(SessionNotFound):
        load_session(tmp_db, 99)
    with pytest.raises(SessionNotFound):
        get_session(tmp_db, 99)


def test_submit_correct_phishing_with_indicators(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    (email_id, indicators), = _email_ids(tmp_db, session_id, 1, True)
    result = submit_response(tmp_db, email_id, True, indicators[:2])
    assert result["is_correct"] is True
    assert result["points_earned"] == 70
    assert result["new_score"] == 1070
    assert result["was_phishing"] is True
    assert result["actual_indicators"] == indicators
    assert get_email(tmp_db, email_id)["is_reported"] is True


def test_submit_correct_legitimate(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    email_id, _ = _email_ids(tmp_db, session_id, 1, False)[0]
    result = submit_response(tmp_db, email_id, False)
    assert result["points_earned"] == 25
    assert result["new_score"] == 1025
    assert result["actual_indicators"] is None
    assert get_email(tmp_db, email_id)["is_read"] is True


def test_submit_false_positive(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    email_id, _ = _email_ids(tmp_db, session_id, 1, False)[0]
    result = submit_response(tmp_db, email_id, True, ["spelling_errors"])
    assert result["is_correct"] is False
    assert result["points_earned"] == -75
    assert result["new_score"] == 925


def test_duplicate_response_rejected(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    email_id, _ = _email_ids(tmp_db, session_id, 1, False)[0]
    submit_response(tmp_db, email_id, False)
    with pytest.raises(DuplicateResponse):
        submit_response(tmp_db, email_id, True)
    assert load_session(tmp_db, session_id).score == 1025
    conn = get_connection(tmp_db)
    count = conn.execute("SELECT COUNT(*) FROM user_responses WHERE email_id = ?", (email_id,)).fetchone()[0]
    conn.close()
    assert count == 1


def test_submit_unknown_email(tmp_db):
    init_db(tmp_db)
    with pytest.raises(EmailNotFound):
        submit_response(tmp_db, 12345, True)


def test_submit_unknown_indicator(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    (email_id, _), = _email_ids(tmp_db, session_id, 1, True)
    with pytest.raises(ValueError):
        submit_response(tmp_db, email_id, True, ["not_a_tag"])
    assert get_email(tmp_db, email_id)["is_read"] is False


def test_stored_reasons_are_deduplicated(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    (email_id, _), = _email_ids(tmp_db, session_id, 1, True)
    submit_response(tmp_db, email_id, True, ["suspicious_link", "suspicious_link"])
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT selected_reasons FROM user_responses WHERE email_id = ?", (email_id,)).fetchone()
    conn.close()
    assert json.loads(row["selected_reasons"]) == ["suspicious_link"]


def test_score_clamped_at_zero(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    conn = get_connection(tmp_db)
    conn.execute("UPDATE sessions SET score = 40 WHERE id = ?", (session_id,))
    conn.commit()
    conn.close()
    (email_id, _), = _email_ids(tmp_db, session_id, 1, True)
    result = submit_response(tmp_db, email_id, False)
    assert result["points_earned"] == -100
    assert result["new_score"] == 0
    assert load_session(tmp_db, session_id).score == 0


def test_emails_remaining_counts_down(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    email_id, _ = _email_ids(tmp_db, session_id, 1, False)[0]
    submit_response(tmp_db, email_id, False)
    session = get_session(tmp_db, session_id)
    assert session["emails_remaining"] == 2
    assert session["all_emails_reviewed"] is False


# --- Daily summary ---


def test_daily_summary_requires_all_responses(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    with pytest.raises(IncompleteDay) as exc:
        get_daily_summary(tmp_db, session_id, 1)
    assert exc.value.remaining == 3


def test_daily_summary_for_day_without_emails(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    with pytest.raises(IncompleteDay):
        get_daily_summary(tmp_db, session_id, 2)


def test_daily_summary_invalid_day(tmp_db, generator):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    with pytest.raises(InvalidDay):
        get_daily_summary(tmp_db, session_id, 8)


def test_daily_summary_perfect_day(tmp_db, generator, answer_day):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    answer_day(tmp_db, session_id, 1)
    summary = get_daily_summary(tmp_db, session_id, 1)
    assert summary["day"] == 1
    assert summary["total_emails"] == 3
    assert summary["correct_answers"] == 3
    assert summary["false_positives"] == 0
    assert summary["false_negatives"] == 0
    assert summary["points_lost"] == 0
    assert summary["final_score"] == 1000 + summary["points_earned"]
    assert summary["overall_feedback"].startswith("Perfect score!")
    assert summary["is_simulation_complete"] is False
    assert len(summary["email_breakdown"]) == 3


def test_daily_summary_all_wrong(tmp_db, generator, answer_day):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    answer_day(tmp_db, session_id, 1, correct=False)
    summary = get_daily_summary(tmp_db, session_id, 1)
    assert summary["correct_answers"] == 0
    assert summary["false_negatives"] == 1
    assert summary["false_positives"] == 2
    assert summary["points_lost"] == 100 + 75 * 2
    assert summary["final_score"] == 1000 - 250
    missed = [b for b in summary["email_breakdown"] if b["was_phishing"]][0]
    assert missed["feedback"].startswith("Missed phishing email. Key indicators:")


def test_daily_summary_upserts_one_row(tmp_db, generator, answer_day):
    init_db(tmp_db)
    session_id = create_session(tmp_db, generator)["session_id"]
    answer_day(tmp_db, session_id, 1)
    first = get_daily_summary(tmp_db, session_id, 1)
    second = get_daily_summary(tmp_db, session_id, 1)
    assert first == second
    conn = get_connection(tmp_db)
    rows = conn.execute("SELECT * FROM daily_results WHERE session_id = ?", (session_id,)).fetchall()
    conn.close()
    assert len(rows) == 1
    assert rows[0]["correct_answers"] == 3
    assert rows[0]["feedback"] == first["overall_feedback"]

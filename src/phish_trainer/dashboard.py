"""Session-wide statistics and accuracy ratings for display."""
from phish_trainer.db import get_connection
from phish_trainer.sessions import load_session


def get_accuracy_label(accuracy: float) -> str:
    if accuracy >= 90:
        return "PHISH HUNTER"
    elif accuracy >= 75:
        return "VIGILANT"
    elif accuracy >= 50:
        return "AT RISK"
    return "EASY TARGET"


def get_accuracy_color(accuracy: float) -> str:
    if accuracy >= 90:
        return "green"
    elif accuracy >= 75:
        return "yellow"
    elif accuracy >= 50:
        return "dark_orange"
    return "red"


def get_session_summary(db_path: str, session_id: int) -> dict:
    session = load_session(db_path, session_id)
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COUNT(*) as total,
            SUM(r.is_correct) as correct,
            SUM(e.is_phishing) as phishing,
            SUM(CASE WHEN e.is_phishing = 1 AND r.reported_as_phishing = 1 THEN 1 ELSE 0 END) as caught
        FROM user_responses r
        JOIN emails e ON r.email_id = e.id
        WHERE r.session_id = ?""",
        (session_id,),
    ).fetchone()
    days = conn.execute(
        "SELECT * FROM daily_results WHERE session_id = ? ORDER BY day",
        (session_id,),
    ).fetchall()
    conn.close()

    total = row["total"]
    correct = row["correct"] or 0
    phishing = row["phishing"] or 0
    caught = row["caught"] or 0
    return {
        "session_id": session.id,
        "final_score": session.score,
        "is_completed": session.is_completed,
        "total_days": session.current_day,
        "statistics": {
            "total_emails": total,
            "correct_answers": correct,
            "accuracy": round(correct / total * 100, 1) if total else 0.0,
            "phishing_caught": caught,
            "total_phishing": phishing,
            # nothing to miss yet counts as a perfect detection rate
            "phishing_detection_rate": round(caught / phishing * 100, 1) if phishing else 100.0,
        },
        "daily_breakdown": [
            {
                "day": d["day"],
                "correct_answers": d["correct_answers"],
                "total_emails": d["total_emails"],
                "points_earned": d["points_earned"],
                "points_lost": d["points_lost"],
            }
            for d in days
        ],
    }

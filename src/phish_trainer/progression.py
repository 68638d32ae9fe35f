"""Day-to-day progression through the curriculum."""
from dataclasses import dataclass, replace
from typing import Optional

from phish_trainer.curriculum import TOTAL_DAYS
from phish_trainer.db import get_connection
from phish_trainer.errors import TrainerError
from phish_trainer.logging_utils import get_logger
from phish_trainer.models import Session
from phish_trainer.sessions import (
    build_day_emails, default_generator, ensure_day_complete, insert_day_emails, load_session, shuffle_rng,
)

log = get_logger(__name__)


@dataclass
class AdvanceResult:
    session: Session
    is_completed: bool
    next_day: Optional[int] = None
    final_score: Optional[int] = None

    @property
    def message(self) -> str:
        if self.is_completed:
            return "Simulation completed!"
        return f"Advanced to Day {self.next_day}"


def advance(session: Session) -> AdvanceResult:
    """Move a session one day forward, or complete it after the last day.

    Day(1) -> ... -> Day(7) -> Completed. The input session is not modified;
    the returned result carries the updated copy.
    """
    if session.current_day >= TOTAL_DAYS:
        done = replace(session, is_completed=True)
        return AdvanceResult(session=done, is_completed=True, final_score=session.score)
    next_day = session.current_day + 1
    return AdvanceResult(
        session=replace(session, current_day=next_day),
        is_completed=False,
        next_day=next_day,
    )


def advance_day(db_path: str, session_id: int, generator=None) -> dict:
    """Persist the next transition of a session whose current day is finished.

    The next day's inbox comes from ``generator`` (see generator.EmailGenerator)
    and is stored in the same transaction as the day change.
    """
    session = load_session(db_path, session_id)
    conn = get_connection(db_path)
    try:
        ensure_day_complete(conn, session_id, session.current_day)
    finally:
        conn.close()

    result = advance(session)
    if result.is_completed:
        conn = get_connection(db_path)
        conn.execute("UPDATE sessions SET is_completed = 1 WHERE id = ?", (session_id,))
        conn.commit()
        conn.close()
        log.info(
            "Session %d completed with score %d", session_id, session.score,
            extra={"session_id": session_id, "day": session.current_day},
        )
        return {"message": result.message, "is_completed": True, "final_score": result.final_score}

    generator = generator or default_generator()
    emails = build_day_emails(result.next_day, generator)
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        cur = conn.execute(
            "UPDATE sessions SET current_day = ? WHERE id = ? AND current_day = ? AND is_completed = 0",
            (result.next_day, session_id, session.current_day),
        )
        if cur.rowcount == 0:
            raise TrainerError(f"Session {session_id} changed while advancing; reload and retry")
        insert_day_emails(conn, session_id, result.next_day, emails, shuffle_rng(generator))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    log.info(
        "Session %d advanced to day %d", session_id, result.next_day,
        extra={"session_id": session_id, "day": result.next_day},
    )
    return {"message": result.message, "is_completed": False, "current_day": result.next_day}

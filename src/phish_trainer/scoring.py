"""Response scoring, daily aggregation and feedback text."""
from phish_trainer.indicators import format_indicators, unique_indicators
from phish_trainer.models import DailyStats, GradedResponse, ScoreResult

CORRECT_PHISHING_REPORT = 50
CORRECT_LEGITIMATE_MARK = 25
CORRECT_INDICATOR_BONUS = 10
FALSE_POSITIVE_PENALTY = 75
FALSE_NEGATIVE_PENALTY = 100


def infer_attack_label(indicators) -> str:
    """Guess an attack category from indicator co-occurrence.

    Only used to phrase feedback; it is approximate and may mislabel.
    """
    indicators = set(indicators)
    if "unusual_request" in indicators and "sense_of_urgency" in indicators:
        return "whaling"
    if "suspicious_sender" in indicators:
        return "spear-phishing"
    return "phishing"


def calculate_score(
    is_phishing: bool,
    reported_as_phishing: bool,
    actual_indicators,
    selected_reasons,
) -> ScoreResult:
    """Grade a single response against the email's ground truth.

    Args:
        is_phishing: Whether the email really was phishing
        reported_as_phishing: Whether the user reported it
        actual_indicators: Indicator tags present in the email
        selected_reasons: Indicator tags the user picked when reporting

    Returns:
        ScoreResult with non-negative earned/lost points. The result is never
        clamped; the session applies the floor when it adds the delta.
    """
    actual = unique_indicators(actual_indicators)
    selected = unique_indicators(selected_reasons)
    is_correct = is_phishing == reported_as_phishing

    if is_correct and is_phishing:
        matched = [r for r in selected if r in actual]
        bonus = len(matched) * CORRECT_INDICATOR_BONUS
        feedback = "Great job! You correctly identified this phishing email."
        if matched:
            feedback += (
                f" You identified {len(matched)} correct indicator(s) "
                f"for a bonus of {bonus} points!"
            )
        missed = [i for i in actual if i not in selected]
        if missed:
            feedback += f" You missed some indicators: {format_indicators(missed)}."
        return ScoreResult(CORRECT_PHISHING_REPORT + bonus, 0, True, feedback)

    if is_correct:
        return ScoreResult(
            CORRECT_LEGITIMATE_MARK, 0, True,
            "Correct! This was a legitimate email. Good eye for not over-reporting.",
        )

    if is_phishing:
        feedback = f"Missed phishing email! This was a {infer_attack_label(actual)} attack."
        if actual:
            feedback += f" Key indicators were: {format_indicators(actual)}."
        return ScoreResult(0, FALSE_NEGATIVE_PENALTY, False, feedback)

    return ScoreResult(
        0, FALSE_POSITIVE_PENALTY, False,
        "False positive! This was a legitimate email. Be careful not to report "
        "everything - this causes security fatigue in real organizations.",
    )


def apply_score_delta(score: int, delta: int) -> int:
    return max(0, score + delta)


def calculate_daily_stats(responses: list[GradedResponse]) -> DailyStats:
    """Fold a day's graded responses into counts and point totals.

    Penalties come from the fixed constants, not from the stored per-response
    points, so stale or tampered rows cannot change the totals.
    """
    stats = DailyStats(total_emails=len(responses))
    for r in responses:
        if r.is_correct:
            stats.correct_answers += 1
            stats.points_earned += r.points_earned
        elif r.was_phishing and not r.reported_as_phishing:
            stats.false_negatives += 1
            stats.points_lost += FALSE_NEGATIVE_PENALTY
        elif not r.was_phishing and r.reported_as_phishing:
            stats.false_positives += 1
            stats.points_lost += FALSE_POSITIVE_PENALTY
        else:
            raise ValueError("Response marked incorrect but its report matches the email")
    return stats


def generate_overall_feedback(
    correct_answers: int,
    total_emails: int,
    false_positives: int,
    false_negatives: int,
) -> str:
    if total_emails == 0:
        return ""
    accuracy = correct_answers / total_emails * 100
    if accuracy == 100:
        parts = ["Perfect score! You correctly identified every email. Excellent security awareness!"]
    elif accuracy >= 80:
        parts = [f"Great job! You correctly handled {accuracy:.0f}% of emails."]
    elif accuracy >= 60:
        parts = [f"Good effort. You got {accuracy:.0f}% correct, but there's room for improvement."]
    else:
        parts = [f"This was challenging. You got {accuracy:.0f}% correct. Review the feedback carefully."]

    if false_negatives > 0:
        parts.append(
            f"You missed {false_negatives} phishing email(s) - always check sender "
            "addresses and hover over links!"
        )
    if false_positives > 0:
        parts.append(
            f"You had {false_positives} false positive(s) - remember, not every "
            "urgent email is malicious."
        )
    return " ".join(parts)

"""Phishing indicator catalog shared by generation, storage and scoring."""

PHISHING_INDICATORS = (
    "sense_of_urgency",
    "suspicious_sender",
    "generic_greeting",
    "spelling_errors",
    "suspicious_link",
    "unexpected_attachment",
    "requests_sensitive_info",
    "too_good_to_be_true",
    "mismatched_urls",
    "poor_formatting",
    "threatens_consequences",
    "unusual_request",
)

INDICATOR_LABELS = {
    "sense_of_urgency": "sense of urgency",
    "suspicious_sender": "suspicious sender address",
    "generic_greeting": "generic greeting",
    "spelling_errors": "spelling/grammar errors",
    "suspicious_link": "suspicious link URL",
    "unexpected_attachment": "unexpected attachment",
    "requests_sensitive_info": "requests sensitive information",
    "too_good_to_be_true": "too good to be true offer",
    "mismatched_urls": "mismatched URLs",
    "poor_formatting": "poor formatting",
    "threatens_consequences": "threatens consequences",
    "unusual_request": "unusual request",
}


def is_indicator(tag: str) -> bool:
    return tag in INDICATOR_LABELS


def get_label(tag: str) -> str:
    return INDICATOR_LABELS.get(tag, tag)


def unique_indicators(tags) -> list[str]:
    """Deduplicate tags, keeping first-seen order."""
    seen = []
    for tag in tags:
        if tag not in seen:
            seen.append(tag)
    return seen


def validate_indicators(tags) -> list[str]:
    """Return the deduplicated tags, raising ValueError on any unknown tag."""
    tags = unique_indicators(tags)
    unknown = [t for t in tags if not is_indicator(t)]
    if unknown:
        raise ValueError(f"Unknown indicator(s): {', '.join(unknown)}")
    return tags


def format_indicators(tags) -> str:
    return ", ".join(get_label(t) for t in tags)

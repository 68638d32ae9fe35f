"""Data classes for the trainer domain model."""
from dataclasses import dataclass, field
from typing import Optional

PHISHING_TYPES = (
    "email_phishing",
    "spear_phishing",
    "whaling",
    "quishing",
    "calendar_phishing",
    "clone_phishing",
)

DIFFICULTY_LEVELS = (1, 2, 3)

INITIAL_SCORE = 1000


@dataclass(frozen=True)
class EmailGroundTruth:
    is_phishing: bool
    indicators: frozenset = frozenset()


@dataclass
class UserResponse:
    reported_as_phishing: bool
    selected_reasons: list = field(default_factory=list)


@dataclass
class ScoreResult:
    points_earned: int
    points_lost: int
    is_correct: bool
    feedback: str = ""

    @property
    def net_points(self) -> int:
        return self.points_earned - self.points_lost


@dataclass
class GradedResponse:
    """One answered email as seen by the daily aggregator."""
    is_correct: bool
    points_earned: int
    was_phishing: bool
    reported_as_phishing: bool


@dataclass
class DailyStats:
    total_emails: int = 0
    correct_answers: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    points_earned: int = 0
    points_lost: int = 0


@dataclass
class Session:
    id: Optional[int] = None
    current_day: int = 1
    score: int = INITIAL_SCORE
    is_completed: bool = False


@dataclass(frozen=True)
class DayConfig:
    day: int
    theme: str
    total_emails: int
    phishing_count: int
    legitimate_count: int
    phishing_types: tuple = ()
    difficulty_levels: tuple = ()
    include_badly_formatted: bool = False


@dataclass(frozen=True)
class PhishingSlot:
    type: str
    level: int


@dataclass
class BatchRequest:
    phishing_slots: list
    legitimate_count: int
    include_badly_formatted: bool
    theme: str


@dataclass
class EmailLink:
    display_text: str
    display_url: str
    actual_url: str
    is_suspicious: bool = False


@dataclass
class HeaderInfo:
    spf: str
    dkim: str
    dmarc: str
    return_path: str
    received_from: str
    message_id: str


@dataclass
class GeneratedEmail:
    sender: str
    sender_email: str
    subject: str
    body: str
    is_phishing: bool
    phishing_type: Optional[str] = None
    difficulty_level: Optional[int] = None
    indicators: list = field(default_factory=list)
    links: list = field(default_factory=list)
    has_attachment: bool = False
    attachment_name: Optional[str] = None
    has_qr_code: bool = False
    qr_code_url: Optional[str] = None
    has_calendar_invite: bool = False
    calendar_details: Optional[dict] = None
    is_threaded: bool = False
    thread_emails: list = field(default_factory=list)
    header_info: Optional[HeaderInfo] = None

    @property
    def ground_truth(self) -> EmailGroundTruth:
        indicators = frozenset(self.indicators) if self.is_phishing else frozenset()
        return EmailGroundTruth(is_phishing=self.is_phishing, indicators=indicators)

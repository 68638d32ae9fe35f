"""The 7-day curriculum and per-slot phishing type/difficulty lookup."""
from phish_trainer.errors import InvalidDay
from phish_trainer.models import BatchRequest, DayConfig, PhishingSlot

DAY_CONFIGS = (
    DayConfig(
        day=1, theme="Introduction - Obvious Attacks",
        total_emails=3, phishing_count=1, legitimate_count=2,
        phishing_types=("email_phishing",), difficulty_levels=(1,),
        include_badly_formatted=False,
    ),
    DayConfig(
        day=2, theme="Urgency Tactics",
        total_emails=4, phishing_count=2, legitimate_count=2,
        phishing_types=("email_phishing", "email_phishing"), difficulty_levels=(1, 2),
        include_badly_formatted=True,
    ),
    DayConfig(
        day=3, theme="Spear-phishing - The Human Element",
        total_emails=4, phishing_count=2, legitimate_count=2,
        phishing_types=("spear_phishing", "spear_phishing"), difficulty_levels=(2, 2),
        include_badly_formatted=True,
    ),
    # All legitimate; some look suspicious on purpose
    DayConfig(
        day=4, theme="Safe Harbor - False Positive Test",
        total_emails=5, phishing_count=0, legitimate_count=5,
        include_badly_formatted=True,
    ),
    DayConfig(
        day=5, theme="Modern Tactics - QR Codes & Calendar",
        total_emails=4, phishing_count=2, legitimate_count=2,
        phishing_types=("quishing", "calendar_phishing"), difficulty_levels=(2, 2),
        include_badly_formatted=False,
    ),
    DayConfig(
        day=6, theme="Whaling - Executive Attacks",
        total_emails=4, phishing_count=2, legitimate_count=2,
        phishing_types=("whaling", "whaling"), difficulty_levels=(1, 2),
        include_badly_formatted=True,
    ),
    DayConfig(
        day=7, theme="Boss Level - Sophisticated Attacks",
        total_emails=5, phishing_count=3, legitimate_count=2,
        phishing_types=("clone_phishing", "spear_phishing", "clone_phishing"),
        difficulty_levels=(3, 3, 3),
        include_badly_formatted=False,
    ),
)

TOTAL_DAYS = len(DAY_CONFIGS)


def get_day_config(day: int) -> DayConfig:
    for config in DAY_CONFIGS:
        if config.day == day:
            return config
    raise InvalidDay(day)


def _slot_value(config: DayConfig, values: tuple, index: int):
    if not 0 <= index < config.phishing_count:
        raise IndexError(f"Day {config.day} has no phishing slot {index}")
    return values[index % len(values)]


def phishing_type_for_index(config: DayConfig, index: int) -> str:
    return _slot_value(config, config.phishing_types, index)


def difficulty_for_index(config: DayConfig, index: int) -> int:
    return _slot_value(config, config.difficulty_levels, index)


def get_phishing_slots(config: DayConfig) -> list[PhishingSlot]:
    """Slots for each phishing email of the day, cycling the listed values."""
    return [
        PhishingSlot(type=phishing_type_for_index(config, i), level=difficulty_for_index(config, i))
        for i in range(config.phishing_count)
    ]


def build_batch_request(config: DayConfig) -> BatchRequest:
    return BatchRequest(
        phishing_slots=get_phishing_slots(config),
        legitimate_count=config.legitimate_count,
        include_badly_formatted=config.include_badly_formatted,
        theme=config.theme,
    )

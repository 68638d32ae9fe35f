"""Runtime configuration read from the environment and an optional .env file."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = os.getenv(
    "PHISH_TRAINER_DB", str(Path.home() / ".phish_trainer" / "trainer.db")
)


def get_random_seed() -> int | None:
    """Seed for template selection and inbox shuffling; unset means random."""
    value = os.getenv("PHISH_TRAINER_SEED")
    if not value:
        return None
    return int(value)

"""Reference guide: phishing types, a safety checklist and what to do after a click."""
import json
from dataclasses import dataclass
from pathlib import Path

from phish_trainer.models import PHISHING_TYPES

CONTENT_DIR = Path(__file__).parent / "content"


@dataclass(frozen=True)
class PhishingTypeGuide:
    type: str
    name: str
    description: str
    signs: tuple[str, ...]


def load_guide() -> dict:
    return json.loads((CONTENT_DIR / "phishing_guide.json").read_text())


def get_type_guides(guide: dict | None = None) -> list[PhishingTypeGuide]:
    """One entry per phishing type, in curriculum order; raises KeyError if a type is undocumented."""
    guide = guide or load_guide()
    entries = []
    for phishing_type in PHISHING_TYPES:
        info = guide["types"][phishing_type]
        entries.append(PhishingTypeGuide(
            type=phishing_type,
            name=info["name"],
            description=info["description"],
            signs=tuple(info["signs"]),
        ))
    return entries


def get_checklist(guide: dict | None = None) -> list[tuple[str, str]]:
    guide = guide or load_guide()
    return [(item["title"], item["description"]) for item in guide["checklist"]]


def get_if_clicked_steps(guide: dict | None = None) -> list[str]:
    guide = guide or load_guide()
    return list(guide["if_clicked"])

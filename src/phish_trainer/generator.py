"""Email batch generation for a curriculum day.

The trainer only reads ``is_phishing`` and ``indicators`` from a generated
email; everything else is content for display. Generators are passed in
wherever a day's inbox is created, so an LLM-backed implementation can stand
in for the template one without touching the session layer.
"""
import json
import random
import time
from pathlib import Path
from typing import Protocol

from phish_trainer.logging_utils import get_logger
from phish_trainer.models import (
    BatchRequest, EmailLink, GeneratedEmail, HeaderInfo,
)

CONTENT_DIR = Path(__file__).parent / "content"
COMPANY_DOMAIN = "acme-technologies.com"

log = get_logger(__name__)


class EmailGenerator(Protocol):
    def generate_batch(self, request: BatchRequest) -> list[GeneratedEmail]:
        ...


def load_templates() -> dict:
    return json.loads((CONTENT_DIR / "email_templates.json").read_text())


def generate_header_info(is_phishing: bool, level: int | None, rng: random.Random) -> HeaderInfo:
    """Authentication headers whose quality tracks the email's difficulty."""
    stamp = int(time.time() * 1000)
    token = f"{rng.getrandbits(40):x}"
    if not is_phishing:
        return HeaderInfo(
            spf="pass", dkim="pass", dmarc="pass",
            return_path=f"noreply@{COMPANY_DOMAIN}",
            received_from=f"mail.{COMPANY_DOMAIN}",
            message_id=f"<{stamp}.{token}@{COMPANY_DOMAIN}>",
        )
    if level == 1:
        return HeaderInfo(
            spf="fail", dkim="fail", dmarc="fail",
            return_path="sender@suspicious-domain.xyz",
            received_from="192.168.1.100 (unknown)",
            message_id=f"<{stamp}@randomserver.net>",
        )
    if level == 2:
        return HeaderInfo(
            spf="softfail", dkim="none", dmarc="fail",
            return_path="noreply@acme-tech0logies.com",
            received_from="mail.acme-tech0logies.com",
            message_id=f"<{stamp}.msg@acme-tech0logies.com>",
        )
    # level 3 is nearly perfect
    return HeaderInfo(
        spf="pass", dkim="pass", dmarc="none",
        return_path="admin@acme-technologies.co",
        received_from="mail.acme-technologies.co",
        message_id=f"<{stamp}.{token}@acme-technologies.co>",
    )


class TemplateEmailGenerator:
    """Builds a day's emails from the static templates in content/."""

    def __init__(self, seed: int | None = None, templates: dict | None = None):
        self.rng = random.Random(seed)
        self.templates = templates or load_templates()

    def _phishing_template(self, phishing_type: str, level: int) -> dict:
        by_type = self.templates["phishing"].get(phishing_type)
        if not by_type:
            log.warning("No templates for %s, using email_phishing", phishing_type)
            by_type = self.templates["phishing"]["email_phishing"]
        template = by_type.get(str(level))
        if template is None:
            template = by_type[min(by_type, key=int)]
        return template

    def _build(self, template: dict, is_phishing: bool, phishing_type=None, level=None) -> GeneratedEmail:
        return GeneratedEmail(
            sender=template["sender"],
            sender_email=template["sender_email"],
            subject=template["subject"],
            body=template["body"],
            is_phishing=is_phishing,
            phishing_type=phishing_type,
            difficulty_level=level,
            indicators=list(template.get("indicators", [])) if is_phishing else [],
            links=[EmailLink(**link) for link in template.get("links", [])],
            has_attachment=template.get("has_attachment", False),
            attachment_name=template.get("attachment_name"),
            has_qr_code=template.get("has_qr_code", False),
            qr_code_url=template.get("qr_code_url"),
            has_calendar_invite=template.get("has_calendar_invite", False),
            calendar_details=template.get("calendar_details"),
            is_threaded=template.get("is_threaded", False),
            thread_emails=list(template.get("thread_emails", [])),
            header_info=generate_header_info(is_phishing, level, self.rng),
        )

    def generate_phishing_email(self, phishing_type: str, level: int) -> GeneratedEmail:
        template = self._phishing_template(phishing_type, level)
        return self._build(template, True, phishing_type, level)

    def generate_legitimate_email(self, badly_formatted: bool = False) -> GeneratedEmail:
        pool = self.templates["legitimate"]["badly_formatted" if badly_formatted else "normal"]
        return self._build(self.rng.choice(pool), False)

    def generate_batch(self, request: BatchRequest) -> list[GeneratedEmail]:
        emails = [
            self.generate_phishing_email(slot.type, slot.level)
            for slot in request.phishing_slots
        ]
        for i in range(request.legitimate_count):
            # Only the first legitimate email of a day is the suspicious-looking kind
            emails.append(self.generate_legitimate_email(request.include_badly_formatted and i == 0))
        log.info(
            "Generated %d emails for '%s' (%d phishing)",
            len(emails), request.theme, len(request.phishing_slots),
        )
        return emails

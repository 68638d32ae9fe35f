"""Interactive CLI application."""
import re

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from phish_trainer.config import DEFAULT_DB_PATH
from phish_trainer.curriculum import DAY_CONFIGS, TOTAL_DAYS, get_day_config
from phish_trainer.dashboard import get_accuracy_color, get_accuracy_label, get_session_summary
from phish_trainer.db import init_db
from phish_trainer.errors import TrainerError
from phish_trainer.guide import get_checklist, get_if_clicked_steps, get_type_guides
from phish_trainer.indicators import PHISHING_INDICATORS, format_indicators, get_label
from phish_trainer.logging_utils import configure_logging
from phish_trainer.progression import advance_day
from phish_trainer.sessions import (
    create_session, get_active_session_id, get_daily_summary, get_emails_for_day,
    get_session, submit_response,
)

console = Console()


class SessionExitRequested(Exception):
    """Raised when the user leaves the inbox mid-day with 'q' or 'menu'."""


def session_prompt(prompt: str, **kwargs) -> str:
    if "choices" in kwargs:
        kwargs["choices"] = list(kwargs["choices"]) + ["q", "menu"]
    value = Prompt.ask(prompt, **kwargs)
    if value.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return value


def parse_indicator_selection(text: str) -> list[str]:
    """Turn '1, 3 5' into indicator tags; raises ValueError on bad numbers."""
    tags = []
    for part in re.split(r"[,\s]+", text.strip()):
        if not part:
            continue
        index = int(part)
        if not 1 <= index <= len(PHISHING_INDICATORS):
            raise ValueError(f"No indicator numbered {index}")
        tag = PHISHING_INDICATORS[index - 1]
        if tag not in tags:
            tags.append(tag)
    return tags


def html_to_text(body: str) -> str:
    text = re.sub(r"</p>|<br\s*/?>|</li>", "\n", body)
    text = re.sub(r"<[^>]+>", "", text)
    return text.strip()


def show_welcome():
    console.print(Panel(
        "[bold]Phishing Awareness Trainer[/bold]\n[dim]7 days. One inbox. Don't take the bait.[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("inbox", "Review today's emails"),
        ("summary", "Today's results"),
        ("next", "Advance to the next day"),
        ("stats", "Session statistics"),
        ("plan", "View 7-day curriculum"),
        ("guide", "Phishing types and safety tips"),
        ("new", "Start a new simulation"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_email(email: dict, position: int, total: int) -> None:
    lines = [
        f"[bold]From:[/bold] {email['sender']} <{email['sender_email']}>",
        f"[bold]Subject:[/bold] {escape(email['subject'])}",
        "",
        escape(html_to_text(email["body"])),
    ]
    if email["is_threaded"]:
        for earlier in email["thread_emails"]:
            lines.append(f"\n[dim]--- {earlier['sender']} <{earlier['sender_email']}> {earlier['timestamp']}[/dim]")
            lines.append(f"[dim]{html_to_text(earlier['body'])}[/dim]")
    for link in email["links"]:
        lines.append(f"\n[blue]{link['display_text']}[/blue] [dim](links to {link['actual_url']})[/dim]")
    if email["has_attachment"]:
        lines.append(f"\n[yellow]Attachment:[/yellow] {email['attachment_name']}")
    if email["has_qr_code"]:
        lines.append(f"\n[yellow]QR code[/yellow] [dim](encodes {email['qr_code_url']})[/dim]")
    if email["has_calendar_invite"] and email["calendar_details"]:
        cal = email["calendar_details"]
        lines.append(f"\n[yellow]Invite:[/yellow] {cal['title']} - {cal['date']} {cal['time']} ({cal['organizer']})")
    header = email["header_info"]
    if header:
        lines.append(
            f"\n[dim]SPF {header['spf']} | DKIM {header['dkim']} | DMARC {header['dmarc']} | "
            f"Return-Path {header['return_path']}[/dim]"
        )
    console.print(Panel("\n".join(lines), title=f"Email {position}/{total}", border_style="cyan"))


def ask_indicators() -> list[str]:
    for i, tag in enumerate(PHISHING_INDICATORS, 1):
        console.print(f"  [cyan]{i:>2}[/cyan]) {get_label(tag)}")
    while True:
        answer = session_prompt("Which red flags did you spot? (numbers, blank for none)", default="")
        try:
            return parse_indicator_selection(answer)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")


def run_inbox(db_path: str, emails: list) -> None:
    pending = [e for e in emails if not e["is_read"]]
    if not pending:
        console.print("[yellow]Inbox zero! Check your 'summary' and move to the 'next' day.[/yellow]")
        return
    for i, email in enumerate(pending, 1):
        show_email(email, i, len(pending))
        action = session_prompt("Report as phishing (r) or mark safe (s)", choices=["r", "s"])
        reported = action == "r"
        reasons = ask_indicators() if reported else []
        result = submit_response(db_path, email["id"], reported, reasons)
        color = "green" if result["is_correct"] else "red"
        console.print(f"[{color}]{result['feedback']}[/{color}]")
        if result["actual_indicators"]:
            console.print(f"[dim]Red flags: {format_indicators(result['actual_indicators'])}[/dim]")
        console.print(f"[bold]{result['points_earned']:+d} points[/bold]  Score: {result['new_score']}\n")


def require_session(db_path: str) -> int:
    session_id = get_active_session_id(db_path)
    if session_id is None:
        session_id = create_session(db_path)["session_id"]
    return session_id


def cmd_inbox(db_path: str):
    session = get_session(db_path, require_session(db_path))
    if session["is_completed"]:
        console.print("[yellow]This simulation is complete. Use 'new' to start again.[/yellow]")
        return
    config = get_day_config(session["current_day"])
    console.print(Panel(
        f"Day [bold]{config.day}[/bold] of {TOTAL_DAYS}: [cyan]{config.theme}[/cyan]\n"
        f"Score: [bold]{session['score']}[/bold]  |  Emails remaining: {session['emails_remaining']}",
        title="Inbox",
    ))
    emails = get_emails_for_day(db_path, session["id"], session["current_day"])
    try:
        run_inbox(db_path, emails)
    except SessionExitRequested:
        console.print("[dim]Back to menu. Your answers so far are saved.[/dim]")


def cmd_summary(db_path: str):
    session = get_session(db_path, require_session(db_path))
    summary = get_daily_summary(db_path, session["id"], session["current_day"])
    table = Table(title=f"Day {summary['day']} Results")
    table.add_column("Subject")
    table.add_column("Actual")
    table.add_column("You said")
    table.add_column("Result")
    for item in summary["email_breakdown"]:
        table.add_row(
            item["subject"],
            "Phishing" if item["was_phishing"] else "Legitimate",
            "Phishing" if item["user_reported_phishing"] else "Safe",
            "[green]Correct[/green]" if item["is_correct"] else f"[red]{item['feedback']}[/red]",
        )
    console.print(table)
    console.print(
        f"\n  Correct: [bold]{summary['correct_answers']}/{summary['total_emails']}[/bold]  |  "
        f"Missed: [bold]{summary['false_negatives']}[/bold]  |  "
        f"False alarms: [bold]{summary['false_positives']}[/bold]  |  "
        f"[green]+{summary['points_earned']}[/green] [red]-{summary['points_lost']}[/red]  |  "
        f"Score: [bold]{summary['final_score']}[/bold]"
    )
    if summary["overall_feedback"]:
        console.print(f"\n  {summary['overall_feedback']}")


def cmd_next(db_path: str):
    session_id = require_session(db_path)
    result = advance_day(db_path, session_id)
    if result["is_completed"]:
        console.print(Panel(
            f"[bold]{result['message']}[/bold]\nFinal score: [bold]{result['final_score']}[/bold]",
            border_style="green",
        ))
        cmd_stats(db_path)
        return
    config = get_day_config(result["current_day"])
    console.print(f"[green]{result['message']}: {config.theme}[/green]")


def cmd_stats(db_path: str):
    summary = get_session_summary(db_path, require_session(db_path))
    stats = summary["statistics"]
    color = get_accuracy_color(stats["accuracy"])
    label = get_accuracy_label(stats["accuracy"])
    console.print(Panel(
        f"Score: [bold]{summary['final_score']}[/bold]  |  Day {summary['total_days']} of {TOTAL_DAYS}"
        + ("  |  [green]Completed[/green]" if summary["is_completed"] else ""),
        title="Session Statistics", border_style="blue",
    ))
    console.print(
        f"\n  Accuracy: [bold]{stats['accuracy']}%[/bold] [{color}]{label}[/{color}]  |  "
        f"Phishing caught: [bold]{stats['phishing_caught']}/{stats['total_phishing']}[/bold] "
        f"({stats['phishing_detection_rate']}%)\n"
    )
    if summary["daily_breakdown"]:
        table = Table(title="Daily Breakdown")
        table.add_column("Day", justify="right")
        table.add_column("Correct", justify="right")
        table.add_column("Earned", justify="right")
        table.add_column("Lost", justify="right")
        for d in summary["daily_breakdown"]:
            table.add_row(
                str(d["day"]), f"{d['correct_answers']}/{d['total_emails']}",
                f"[green]{d['points_earned']}[/green]", f"[red]{d['points_lost']}[/red]",
            )
        console.print(table)


def cmd_plan(db_path: str):
    session = get_session(db_path, require_session(db_path))
    table = Table(title="7-Day Curriculum")
    table.add_column("Day", justify="right")
    table.add_column("Theme")
    table.add_column("Emails", justify="right")
    table.add_column("Status")
    for config in DAY_CONFIGS:
        if config.day < session["current_day"] or session["is_completed"]:
            status = "[green]Done[/green]"
        elif config.day == session["current_day"]:
            status = "[cyan]Current[/cyan]"
        else:
            status = ""
        table.add_row(str(config.day), config.theme, str(config.total_emails), status)
    console.print(table)


def cmd_guide():
    table = Table(title="Types of Phishing", show_lines=True)
    table.add_column("Type", style="cyan")
    table.add_column("What it is")
    table.add_column("Warning signs")
    for entry in get_type_guides():
        table.add_row(entry.name, entry.description, "\n".join(f"- {s}" for s in entry.signs))
    console.print(table)

    console.print("\n[bold]Safety Checklist[/bold]")
    for title, description in get_checklist():
        console.print(f"  [green]{title}[/green]: {description}")

    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(get_if_clicked_steps(), 1))
    console.print(Panel(steps, title="What If I Clicked a Phishing Link?", border_style="red"))


def cmd_new(db_path: str):
    created = create_session(db_path)
    console.print(f"[green]New simulation started. Day 1: {get_day_config(1).theme}[/green]")
    console.print(f"[dim]Starting score: {created['score']}[/dim]")


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()
    require_session(db_path)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="inbox").strip().lower()
        try:
            if choice == "inbox":
                cmd_inbox(db_path)
            elif choice == "summary":
                cmd_summary(db_path)
            elif choice == "next":
                cmd_next(db_path)
            elif choice == "stats":
                cmd_stats(db_path)
            elif choice == "plan":
                cmd_plan(db_path)
            elif choice == "guide":
                cmd_guide()
            elif choice == "new":
                cmd_new(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Stay suspicious out there![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TrainerError as e:
            console.print(f"[red]{e}[/red]")


if __name__ == "__main__":
    main()

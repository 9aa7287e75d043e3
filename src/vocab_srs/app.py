"""Interactive CLI application."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from vocab_srs.config import Settings, load_settings
from vocab_srs.dashboard import calculate_dashboard_stats, get_mastery_color, get_mastery_label
from vocab_srs.errors import VocabSrsError
from vocab_srs.importer import import_file, sample_template
from vocab_srs.models import Card, ReviewMode, ReviewRating
from vocab_srs.scheduler import calculate_retention, card_status
from vocab_srs.session import StudySession
from vocab_srs.storage import export_backup, import_backup

console = Console()

RATING_CHOICES = {
    "1": ReviewRating.AGAIN,
    "2": ReviewRating.HARD,
    "3": ReviewRating.GOOD,
    "4": ReviewRating.EASY,
}
STOP_WORDS = ("q", "quit", "menu")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def show_welcome():
    console.print(Panel(
        "[bold]Vocabulary Review[/bold]\n[dim]Spaced repetition with a forgetting curve[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due and new cards"),
        ("peek", "Quick peek: question and answer shown together"),
        ("add", "Add a card"),
        ("stats", "Progress dashboard"),
        ("import", "Bulk import from a JSON/YAML template"),
        ("template", "Write a sample import template"),
        ("backup", "Export all cards and reviews to a JSON file"),
        ("restore", "Merge a backup file into your cards"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def render_front(card: Card, position: int) -> Panel:
    lines = [f"[bold]{card.front.term}[/bold]"]
    if card.front.phonetic:
        lines.append(f"[dim]{card.front.phonetic}[/dim]")
    if card.front.example:
        lines.append(f"\n[italic]{card.front.example}[/italic]")
    return Panel("\n".join(lines), title=f"Card {position} · {card.type.value}", border_style="cyan")


def render_back(card: Card) -> Panel:
    back = card.back
    lines = []
    if back is not None:
        if back.translation:
            lines.append(f"[bold]{back.translation}[/bold]")
        if back.explanation:
            lines.append(back.explanation)
        if back.synonyms:
            lines.append(f"[green]≈[/green] {', '.join(back.synonyms)}")
        if back.antonyms:
            lines.append(f"[red]≠[/red] {', '.join(back.antonyms)}")
        if back.notes:
            lines.append(f"[dim]{back.notes}[/dim]")
    if card.front.morphemes:
        lines.append(f"[dim]{' + '.join(card.front.morphemes)}[/dim]")
    return Panel("\n".join(lines) or "[dim](no answer recorded)[/dim]", border_style="green")


def run_review_session(session: StudySession, mode: ReviewMode = ReviewMode.FLASHCARD) -> int:
    """Show cards until nothing is left or the learner stops. Returns the review count.

    In quick-peek mode the answer is shown with the question, without the
    reveal prompt.
    """
    reviewed = 0
    while True:
        card = session.next_card(utcnow())
        if card is None:
            if reviewed == 0:
                console.print("[yellow]Nothing to review right now![/yellow]")
            else:
                console.print(f"[green]All done, {reviewed} cards reviewed.[/green]")
            return reviewed

        state = session.state_of(card.id)
        if state is not None and state.reps > 0:
            retention = calculate_retention(state, utcnow())
            console.print(f"[dim]{card_status(state).value} · estimated recall {retention:.0%}[/dim]")
        console.print(render_front(card, reviewed + 1))
        shown_at = utcnow()
        if mode is ReviewMode.FLASHCARD:
            if Prompt.ask("[dim]Press Enter to reveal answer (q to stop)[/dim]", default="").strip().lower() in STOP_WORDS:
                return reviewed
        console.print(render_back(card))
        choice = Prompt.ask(
            "Rate yourself (1=again, 2=hard, 3=good, 4=easy, q=stop)",
            choices=list(RATING_CHOICES) + ["q"],
        )
        if choice == "q":
            return reviewed
        answered_at = utcnow()
        duration_ms = int((answered_at - shown_at).total_seconds() * 1000)
        session.answer(card.id, RATING_CHOICES[choice], answered_at, duration_ms=duration_ms, mode=mode)
        reviewed += 1
        console.print()


def cmd_review(settings: Settings):
    console.print("\n[bold]Review[/bold]")
    run_review_session(StudySession(settings))


def cmd_peek(settings: Settings):
    console.print("\n[bold]Quick peek[/bold]")
    run_review_session(StudySession(settings), mode=ReviewMode.QUICKPEEK)


def cmd_add(settings: Settings):
    term = Prompt.ask("Term").strip()
    if not term:
        console.print("[red]A term is required.[/red]")
        return
    translation = Prompt.ask("Translation", default="")
    example = Prompt.ask("Example sentence", default="")
    tags = [t for t in Prompt.ask("Tags (comma separated)", default="").split(",") if t.strip()]
    card = StudySession(settings).add_card(
        term, utcnow(), translation=translation, example=example, tags=tags,
    )
    console.print(f"[green]Added '{card.front.term}' as a {card.type.value}.[/green]")


def cmd_stats(settings: Settings):
    session = StudySession(settings)
    now = utcnow()
    index = session.refresh(now)
    stats = calculate_dashboard_stats(index, session.events, now)

    rate = stats.retention_rate
    color = get_mastery_color(rate)
    console.print(Panel(
        f"[bold]{stats.total_cards}[/bold] cards  |  [bold]{stats.due_cards}[/bold] due  |  "
        f"Streak: [bold]{stats.current_streak}[/bold] days",
        title="Vocabulary Dashboard", border_style="blue",
    ))
    bar_filled = int(rate * 20)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(f"\n  Retention: [bold]{rate:.0%}[/bold] {bar} [{color}]{get_mastery_label(rate)}[/{color}]\n")

    table = Table(title="Cards")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("New", str(stats.new_cards))
    table.add_row("Learning", str(stats.learning_cards))
    table.add_row("Mature", str(stats.mature_cards))
    table.add_row("Due now", str(stats.due_cards))
    console.print(table)

    dist = stats.ratings_distribution
    console.print(f"\n  Reviews: [bold]{stats.total_reviews}[/bold] (today {stats.reviews_today})  |  "
                  f"Again {dist['again']} · Hard {dist['hard']} · Good {dist['good']} · Easy {dist['easy']}  |  "
                  f"Avg ease: [bold]{stats.average_ease_factor}[/bold]")


def cmd_import(settings: Settings):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(settings.data_dir, file_path, utcnow())
    console.print(f"[green]Imported {result.imported}, updated {result.updated}, skipped {result.skipped}.[/green]")
    for error in result.errors[:10]:
        console.print(f"  [red]{error}[/red]")


def cmd_template(settings: Settings):
    default = str(Path(settings.data_dir) / "import-template.json")
    target = Path(Prompt.ask("Write template to", default=default))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(sample_template(), indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]Wrote {target}[/green]")


def cmd_backup(settings: Settings):
    now = utcnow()
    default = str(Path(settings.data_dir) / f"vocab-srs-backup-{now.date().isoformat()}.json")
    target = Prompt.ask("Write backup to", default=default)
    cards, events = export_backup(settings.data_dir, target, now)
    if not cards and not events:
        console.print("[yellow]No data to export.[/yellow]")
        return
    console.print(f"[green]Backup written to {target} ({cards} cards, {events} events).[/green]")


def cmd_restore(settings: Settings):
    file_path = Prompt.ask("Backup file")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    cards, events = import_backup(settings.data_dir, file_path)
    console.print(f"[green]Restored {cards} new cards and {events} new reviews.[/green]")


COMMANDS = {
    "review": cmd_review,
    "peek": cmd_peek,
    "add": cmd_add,
    "stats": cmd_stats,
    "import": cmd_import,
    "template": cmd_template,
    "backup": cmd_backup,
    "restore": cmd_restore,
}


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        try:
            if choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow![/dim]")
                break
            command = COMMANDS.get(choice)
            if command is None:
                console.print("[red]Unknown command. Try again.[/red]")
                continue
            command(settings)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (VocabSrsError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

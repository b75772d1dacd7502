"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import FloatPrompt, IntPrompt, Prompt
from rich.table import Table

from notio.config import settings
from notio.dashboard import (
    get_grade_color, get_learning_stats, get_subject_overview,
)
from notio.db import init_db
from notio.flashcards import add_card, get_cards, get_status_counts, record_card_review
from notio.grades import (
    CATEGORIES, GRADE_TYPES, add_grade, add_subject, format_grade, list_grades, list_subjects,
)
from notio.importer import export_grades_csv, import_cards, import_grades_csv
from notio.session import StaticTextGenerator, TextGenerator, build_session
from notio.models import StudyCard
from notio.srs import Performance, compute_due_date, srs_status
from notio.studysets import create_study_set, get_setting, get_study_set, list_study_sets, set_setting

logger = logging.getLogger(__name__)

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the learner leaves a running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def ask_performance() -> Performance:
    while True:
        answer = session_prompt("How well did you know it? (again/good/easy)")
        try:
            return Performance(answer.strip().lower())
        except ValueError:
            console.print("[red]Please answer again, good or easy.[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Notio[/bold]\n[dim]Grades, study sets and spaced repetition[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("sets", "List study sets"),
        ("new", "Create a study set"),
        ("cards", "Show the cards of a set"),
        ("learn", "Spaced repetition session"),
        ("write", "Type the term for each definition"),
        ("import", "Import cards from a file"),
        ("subjects", "Subjects and averages"),
        ("add-subject", "Add a subject"),
        ("add-grade", "Record a grade"),
        ("dashboard", "Learning statistics"),
        ("export", "Export grades to CSV"),
        ("import-grades", "Import grades from CSV"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def current_grade_level(db_path: str) -> int:
    return int(get_setting(db_path, "grade_level", "5"))


def choose_study_set(db_path: str) -> str | None:
    sets = list_study_sets(db_path)
    if not sets:
        console.print("[yellow]No study sets yet. Use 'new' to create one.[/yellow]")
        return None
    for i, s in enumerate(sets, 1):
        console.print(f"  [cyan]{i}[/cyan]) {s.title} [dim]({len(s.cards)} cards)[/dim]")
    choice = IntPrompt.ask("Select set", choices=[str(i) for i in range(1, len(sets) + 1)])
    return sets[choice - 1].id


def run_learn_session(
    db_path: str, set_id: str, generator: TextGenerator | None = None,
) -> int:
    """Present one session of a set and record each self-assessment.

    Returns the number of cards reviewed. Reviews are saved card by card, so
    leaving early keeps the ones already answered.
    """
    cards = get_cards(db_path, set_id)
    session = build_session(cards, settings.max_session_cards, generator)
    if not session.card_ids:
        console.print("[yellow]This study set has no cards.[/yellow]")
        return 0
    by_id = {c.id: c for c in cards}
    total = len(session.card_ids)
    console.print(f"\n[bold]{session.title}[/bold] - {total} cards\n")
    reviewed = 0
    for i, card_id in enumerate(session.card_ids, 1):
        card = by_id[card_id]
        console.print(Panel(card.term, title=f"Card {i}/{total}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal (q to stop)[/dim]", default="")
        console.print(Panel(card.definition, border_style="green"))
        state = record_card_review(db_path, card_id, ask_performance())
        console.print(f"[dim]Next review in {state.interval} day(s)[/dim]\n")
        reviewed += 1
    console.print(f"[green]Session complete! {reviewed} cards reviewed.[/green]")
    return reviewed


def check_answer(card: StudyCard, answer: str) -> bool:
    return answer.strip().lower() == card.term.strip().lower()


def ask_term() -> str:
    while True:
        answer = session_prompt("Term (q to stop)")
        if answer.strip():
            return answer


def run_write_round(cards: list[StudyCard]) -> list[StudyCard]:
    """Ask for the term of every card. Returns the cards answered wrongly."""
    incorrect = []
    for i, card in enumerate(cards, 1):
        console.print(Panel(card.definition, title=f"Card {i}/{len(cards)}", border_style="cyan"))
        if check_answer(card, ask_term()):
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{card.term}[/green]")
            incorrect.append(card)
        console.print()
    correct = len(cards) - len(incorrect)
    console.print(f"[bold]Correct: {correct}  Incorrect: {len(incorrect)}[/bold]\n")
    return incorrect


def run_write_session(db_path: str, set_id: str) -> tuple[int, int]:
    """Write mode: the definition is shown and the learner types the term.

    Answers are compared ignoring case and surrounding whitespace. After a
    round with mistakes the learner may retry just the incorrect cards, until
    none are left or they decline. Write mode does not change SRS data.

    Returns (correct, incorrect) for the first round.
    """
    cards = get_cards(db_path, set_id)
    if not cards:
        console.print("[yellow]This study set has no cards.[/yellow]")
        return 0, 0
    console.print(f"\n[bold]Write[/bold] - {len(cards)} cards\n")
    incorrect = run_write_round(cards)
    result = (len(cards) - len(incorrect), len(incorrect))
    while incorrect and Prompt.ask(
        f"Retry the {len(incorrect)} incorrect cards?", choices=["y", "n"], default="y",
    ) == "y":
        incorrect = run_write_round(incorrect)
    return result


def cmd_sets(db_path: str):
    sets = list_study_sets(db_path)
    if not sets:
        console.print("[yellow]No study sets yet.[/yellow]")
        return
    table = Table(title="Study Sets")
    table.add_column("Title", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Due", justify="right")
    table.add_column("Learned", justify="right")
    for s in sets:
        counts = get_status_counts(db_path, s.id)
        table.add_row(
            s.title, str(len(s.cards)),
            str(counts["new"]), f"[red]{counts['due']}[/red]", f"[green]{counts['learned']}[/green]",
        )
    console.print(table)


def cmd_new(db_path: str):
    title = Prompt.ask("Title")
    description = Prompt.ask("Description", default="")
    console.print("[dim]Enter cards, empty term to finish.[/dim]")
    pairs = []
    while True:
        term = Prompt.ask("Term", default="")
        if not term.strip():
            break
        definition = Prompt.ask("Definition")
        pairs.append((term, definition))
    study_set = create_study_set(db_path, title, pairs, description=description)
    console.print(f"[green]Created '{study_set.title}' with {len(study_set.cards)} cards.[/green]")


def cmd_cards(db_path: str):
    set_id = choose_study_set(db_path)
    if set_id is None:
        return
    study_set = get_study_set(db_path, set_id)
    table = Table(title=study_set.title)
    table.add_column("Term", style="cyan")
    table.add_column("Definition")
    table.add_column("Status")
    table.add_column("Due")
    labels = {"new": "[blue]New[/blue]", "due": "[red]Due[/red]", "learned": "[green]Learned[/green]"}
    for card in study_set.cards:
        status = srs_status(card)
        due = "Now" if status == "new" else compute_due_date(card).strftime("%d.%m.%y")
        table.add_row(card.term, card.definition, labels[status], due)
    console.print(table)
    if Prompt.ask("Add a card?", choices=["y", "n"], default="n") == "y":
        card = add_card(db_path, set_id, Prompt.ask("Term"), Prompt.ask("Definition"))
        console.print(f"[green]Added '{card.term}'.[/green]")


def cmd_learn(db_path: str):
    set_id = choose_study_set(db_path)
    if set_id is None:
        return
    try:
        run_learn_session(db_path, set_id, StaticTextGenerator(settings.session_title))
    except SessionExitRequested:
        console.print("[dim]Session stopped. Your answers so far are saved.[/dim]")


def cmd_write(db_path: str):
    set_id = choose_study_set(db_path)
    if set_id is None:
        return
    try:
        run_write_session(db_path, set_id)
    except SessionExitRequested:
        console.print("[dim]Write session stopped.[/dim]")


def cmd_import(db_path: str):
    set_id = choose_study_set(db_path)
    if set_id is None:
        return
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    count = import_cards(db_path, set_id, file_path)
    console.print(f"[green]Imported {count} cards from {Path(file_path).name}[/green]")


def cmd_subjects(db_path: str):
    level = current_grade_level(db_path)
    overview = get_subject_overview(db_path, level)
    table = Table(title=f"Subjects - Grade {level}")
    table.add_column("Subject", style="cyan")
    table.add_column("Category")
    table.add_column("Average", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Status")
    for row in overview["subjects"]:
        color = get_grade_color(row["average"])
        table.add_row(
            row["name"], row["category"], format_grade(row["average"]),
            format_grade(row["target_grade"]), f"[{color}]{row['label']}[/{color}]",
        )
    console.print(table)
    console.print(
        f"\n  Overall: [bold]{format_grade(overview['overall'])}[/bold]  |  "
        f"Main: [bold]{format_grade(overview['main'])}[/bold]  |  "
        f"Minor: [bold]{format_grade(overview['minor'])}[/bold]"
    )


def cmd_add_subject(db_path: str):
    name = Prompt.ask("Name")
    category = Prompt.ask("Category", choices=list(CATEGORIES), default="main")
    subject = add_subject(db_path, name, category, current_grade_level(db_path))
    console.print(f"[green]Added subject {subject.name}.[/green]")


def cmd_add_grade(db_path: str):
    subjects = list_subjects(db_path, current_grade_level(db_path))
    if not subjects:
        console.print("[yellow]Add a subject first.[/yellow]")
        return
    for s in subjects:
        console.print(f"  [cyan]{s.id}[/cyan]) {s.name}")
    subject_id = IntPrompt.ask("Subject", choices=[str(s.id) for s in subjects])
    grade_type = Prompt.ask("Type", choices=list(GRADE_TYPES), default="written")
    value = FloatPrompt.ask("Grade (1-6)")
    weight = FloatPrompt.ask("Weight", default=1.0)
    add_grade(db_path, subject_id, grade_type, value, weight)
    console.print("[green]Grade saved.[/green]")


def cmd_dashboard(db_path: str):
    stats = get_learning_stats(db_path)
    console.print(Panel("[bold]Learning Progress[/bold]", border_style="blue"))
    console.print(f"\n  Sets: [bold]{stats['study_sets']}[/bold]  |  "
                  f"Cards: [bold]{stats['cards']}[/bold]  |  "
                  f"New: [bold]{stats['new_cards']}[/bold]  |  "
                  f"Due: [bold red]{stats['due_cards']}[/bold red]")
    console.print(f"  Reviews: [bold]{stats['reviews']}[/bold]  |  "
                  f"Retention: [bold]{stats['retention']}%[/bold]\n")
    cmd_subjects(db_path)


def cmd_export(db_path: str):
    level = current_grade_level(db_path)
    csv_text = export_grades_csv(list_subjects(db_path, level), list_grades(db_path))
    target = Prompt.ask("Export to", default="notio-grades.csv")
    Path(target).write_text(csv_text, encoding="utf-8")
    console.print(f"[green]Grades exported to {target}[/green]")


def cmd_import_grades(db_path: str):
    file_path = Prompt.ask("CSV file")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_grades_csv(
        db_path, Path(file_path).read_text(encoding="utf-8"), current_grade_level(db_path),
    )
    console.print(f"[green]{result['imported']} imported[/green], "
                  f"[yellow]{result['skipped']} skipped[/yellow]")


COMMANDS = {
    "sets": cmd_sets,
    "new": cmd_new,
    "cards": cmd_cards,
    "learn": cmd_learn,
    "write": cmd_write,
    "import": cmd_import,
    "subjects": cmd_subjects,
    "add-subject": cmd_add_subject,
    "add-grade": cmd_add_grade,
    "dashboard": cmd_dashboard,
    "export": cmd_export,
    "import-grades": cmd_import_grades,
}


def main():
    logging.basicConfig(
        level=settings.log_level.upper(), format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    db_path = settings.db_path
    init_db(db_path)
    if get_setting(db_path, "grade_level") is None:
        set_setting(db_path, "grade_level", str(IntPrompt.ask("Your grade level", default=5)))

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="learn").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Bye![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

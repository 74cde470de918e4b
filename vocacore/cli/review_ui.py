"""
Command-line interface for the multiple-choice review loop.
"""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from vocacore.constants import DAY_MS
from vocacore.models import LEARNER_GRADES, CardMemoryState, Grade, SessionStats
from vocacore.session import (
    Answered,
    AwaitingAnswer,
    NoContent,
    PassCompleted,
    ReviewSession,
)

logger = logging.getLogger(__name__)
console = Console()

QUIT_KEYS = {"q", "quit"}
HOUR_MS = DAY_MS // 24


class _QuitReview(Exception):
    """Raised by a prompt when the learner asks to stop."""


def _describe_memory(state: CardMemoryState, now: int) -> str:
    """One-line summary of a card's memory state for the question header."""
    summary = f"EF: {state.easiness:.2f}  I: {state.interval}d"
    if state.last_reviewed is None:
        return f"{summary}  |  new word"
    hours = (now - state.last_reviewed) // HOUR_MS
    return f"{summary}  |  last studied {hours}h ago"


def _display_question(session: ReviewSession, state: AwaitingAnswer) -> None:
    question = state.question
    memory = session.store[question.index]
    body = Text(question.word, style="bold", justify="center")
    body.append(
        f"\n{_describe_memory(memory, session.clock())}", style="dim"
    )
    console.print(
        Panel(
            body,
            title=f"Remaining: {session.remaining}",
            border_style="green",
        )
    )
    for number, option in enumerate(question.options, start=1):
        console.print(f"  [bold]{number}.[/bold] {option}")


def _read(prompt: str) -> str:
    answer = console.input(prompt).strip().lower()
    if answer in QUIT_KEYS:
        raise _QuitReview()
    return answer


def _ask_for_option(state: AwaitingAnswer) -> str:
    """
    Prompt until the learner picks an option number or skips.

    Returns:
        The chosen option text, or "" for a skip.
    """
    options = state.question.options
    while True:
        answer = _read(
            f"[bold]Choose 1-{len(options)} (Enter to skip, q to quit): [/bold]"
        )
        if not answer:
            return ""
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        console.print(
            f"[bold red]Invalid choice. Enter a number between 1 and {len(options)}.[/bold red]"
        )


def _ask_for_grade() -> Grade:
    labels = ", ".join(
        f"{number}:{grade.label.title()}"
        for number, grade in enumerate(LEARNER_GRADES, start=1)
    )
    while True:
        answer = _read(f"[bold]How hard was it? ({labels}): [/bold]")
        if answer.isdigit() and 1 <= int(answer) <= len(LEARNER_GRADES):
            return LEARNER_GRADES[int(answer) - 1]
        console.print(
            f"[bold red]Invalid rating. Enter a number between 1 and {len(LEARNER_GRADES)}.[/bold red]"
        )


def _report_pass_complete(event: PassCompleted) -> None:
    console.rule(
        f"[bold cyan]All cards reviewed! Starting pass {event.pass_number + 1}.[/bold cyan]"
    )


def _report_outcome(state: Answered) -> None:
    if state.correct:
        console.print("[green]Correct![/green]")
    elif state.selection:
        console.print(
            f"[red]Wrong.[/red] The answer is [bold]{state.question.answer}[/bold]."
        )
    else:
        console.print(
            f"[yellow]Skipped.[/yellow] The answer is [bold]{state.question.answer}[/bold]."
        )


def _review_one(session: ReviewSession, state: AwaitingAnswer) -> None:
    _display_question(session, state)
    answered = session.select(_ask_for_option(state))
    _report_outcome(answered)
    if answered.correct:
        session.rate(_ask_for_grade())
    else:
        _read("[italic]Press Enter for the next word...[/italic]")
        session.advance()
    console.print("")


def start_review_flow(session: ReviewSession) -> SessionStats:
    """
    Run the review loop until the learner quits.

    Args:
        session: A ReviewSession that has not been started yet.

    Returns:
        The session's statistics at the time the learner quit.
    """
    session.on_pass_complete(_report_pass_complete)
    state = session.start()
    if isinstance(state, NoContent):
        console.print("[bold yellow]The catalog has no words to review.[/bold yellow]")
        return session.stats

    console.print("[bold cyan]Starting review session... (q to quit)[/bold cyan]")
    try:
        while isinstance(session.state, AwaitingAnswer):
            _review_one(session, session.state)
    except (_QuitReview, EOFError):
        logger.debug("Learner ended the review session.")

    stats = session.stats
    console.print(
        f"[bold cyan]Review session finished.[/bold cyan] "
        f"Reviewed {stats.cards_reviewed} cards, "
        f"{stats.correct_answers} correct, {stats.passes_completed} passes completed."
    )
    return stats

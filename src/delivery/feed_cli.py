"""
mathfeed: Adaptive Math Practice CLI.

A Rich terminal interface for the continuous practice feed: exercises are
served from a prefetched buffer whose difficulty follows the learner's
answer streaks.

Commands:
- mathfeed practice  - Start a practice feed for selected topics
- mathfeed topics    - List the local topic catalog
- mathfeed score     - Compute the XP for a hypothetical answer
"""
from __future__ import annotations

import asyncio
import sys
import time
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from loguru import logger

from config import get_settings
from src.generation import ExerciseGeneratorClient, TOPIC_CATALOG, complete_topic, get_local_topics
from src.practice import (
    AnswerReport,
    EngineConfig,
    Exercise,
    ExerciseType,
    PracticeEngine,
    ScoringMode,
    TopicRef,
    score_answer,
)
from src.practice.models import DIFFICULTY_LABELS
from src.practice.scoring import level_progress, xp_to_next_level


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="mathfeed",
    help="mathfeed: Adaptive Math Practice",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
}


def style_difficulty(level: int) -> str:
    """Color a difficulty level from green (easy) to red (expert)."""
    if level <= 3:
        color = "green"
    elif level <= 6:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{level} ({DIFFICULTY_LABELS.get(level, '?')})[/{color}]"


# =============================================================================
# Display Helpers
# =============================================================================

def display_exercise(exercise: Exercise, index: int) -> None:
    """Display an exercise with its options or steps."""
    header = (
        f"#{index}  |  {exercise.topic} > {exercise.subtopic}  |  "
        f"Level {style_difficulty(exercise.difficulty)}"
    )
    if exercise.offline:
        header += "  |  [yellow]offline[/yellow]"

    content = exercise.question
    if exercise.type is ExerciseType.MULTIPLE_CHOICE:
        content += "\n\n"
        for option in exercise.options:
            content += f"  {option.id}. {option.text}\n"
    else:
        content += "\n"
        for step in exercise.steps:
            content += f"\n  Step {step.step_number}: {step.instruction}"

    console.print(Panel(
        content,
        title=header,
        title_align="left",
        border_style="cyan",
        padding=(1, 2),
    ))


def display_report(report: AnswerReport) -> None:
    """Display the outcome of one answer."""
    outcome = report.outcome
    if outcome.skipped:
        style, icon = STYLES["warning"], "[yellow]»[/yellow]"
    elif outcome.is_correct:
        style, icon = STYLES["correct"], "[green]✓[/green]"
    else:
        style, icon = STYLES["incorrect"], "[red]✗[/red]"

    content = f"{icon} {report.feedback}"
    if outcome.xp_awarded:
        content += f"\n\n[bold]+{outcome.xp_awarded} XP[/bold]"
        if outcome.breakdown.streak_bonus:
            content += f" [dim](streak bonus +{outcome.breakdown.streak_bonus})[/dim]"

    transition = report.transition
    if transition is not None and transition.escalated:
        content += f"\n[cyan]Level up: difficulty {transition.level}[/cyan]"
    elif transition is not None and transition.deescalated:
        content += f"\n[yellow]Easing off: difficulty {transition.level}, easier exercises coming[/yellow]"

    console.print(Panel(content, border_style=style, padding=(1, 2)))


def _display_session_summary(engine: PracticeEngine) -> None:
    """Display end-of-feed statistics."""
    stats = engine.stats
    table = Table(title="Practice Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Answered", str(stats.total_answered))
    table.add_row("Correct", str(stats.correct))
    table.add_row("Skipped", str(stats.skipped))
    table.add_row("Accuracy", f"{stats.accuracy:.0f}%")
    table.add_row("XP earned", str(stats.xp_earned))
    table.add_row("Level", f"{stats.level} ({level_progress(stats.xp_earned):.0f}%, "
                           f"{xp_to_next_level(stats.xp_earned)} XP to next)")
    table.add_row("Final difficulty", style_difficulty(engine.buffer.difficulty))
    console.print()
    console.print(table)


# =============================================================================
# Answer Input
# =============================================================================

async def _ask(prompt: str, **kwargs: Any) -> str:
    # Prompt.ask blocks; run it in a worker thread
    return await asyncio.to_thread(Prompt.ask, prompt, **kwargs)


async def _read_answer(exercise: Exercise) -> tuple[Any, int, bool]:
    """
    Read an answer, revealing hints on request.

    Returns:
        (answer, hints_used, skipped)
    """
    hints_used = 0

    if exercise.type is ExerciseType.MULTIPLE_CHOICE:
        ids = [opt.id for opt in exercise.options]
        choices = ids + [i.lower() for i in ids] + ["h", "s"]
        while True:
            raw = (await _ask("Your answer (h = hint, s = skip)", choices=choices)).upper()
            if raw == "S":
                return None, hints_used, True
            if raw != "H":
                return raw, hints_used, False
            hints_used = _reveal_hint(exercise, hints_used)

    answers = []
    for step in exercise.steps:
        while True:
            raw = await _ask(f"Step {step.step_number} (h = hint, s = skip)")
            if raw.strip().lower() == "s":
                return None, hints_used, True
            if raw.strip().lower() != "h":
                answers.append(raw)
                break
            hints_used = _reveal_hint(exercise, hints_used)
    return answers, hints_used, False


def _reveal_hint(exercise: Exercise, hints_used: int) -> int:
    if hints_used >= len(exercise.hints):
        console.print("[dim]No more hints.[/dim]")
        return hints_used
    hint = exercise.hints[hints_used]
    console.print(f"[yellow]Hint {hint.level}:[/yellow] {hint.text}")
    return hints_used + 1


def _resolve_topics(topic: list[str], leitidee: Optional[str]) -> list[TopicRef]:
    """Turn 'Thema/Unterthema' or bare subtopic strings into topic references."""
    topics = []
    for entry in topic:
        thema, _, unterthema = entry.partition("/")
        if not unterthema:
            thema, unterthema = "", thema
        topics.append(complete_topic(TopicRef(thema=thema.strip(), unterthema=unterthema.strip())))
    if not topics and leitidee:
        topics = get_local_topics(leitidee)
    return topics


# =============================================================================
# Commands
# =============================================================================

@app.command()
def practice(
    topic: list[str] = typer.Option(
        [],
        "--topic", "-t",
        help="Topic as 'Thema/Unterthema' or subtopic name (repeatable)",
    ),
    leitidee: Optional[str] = typer.Option(
        None,
        "--leitidee", "-l",
        help="Practice every topic of one guiding idea",
    ),
    difficulty: Optional[int] = typer.Option(
        None,
        "--difficulty", "-d",
        min=1, max=10,
        help="Starting difficulty (1-10)",
    ),
    mode: Optional[ScoringMode] = typer.Option(
        None,
        "--mode", "-m",
        help="XP formula (formal or live)",
    ),
    limit: int = typer.Option(
        0,
        "--limit", "-n",
        help="Stop after this many exercises (0 = until interrupted)",
    ),
) -> None:
    """
    Start an adaptive practice feed.

    Exercises come from the generator service when it is configured and
    reachable, otherwise from local templates.
    """
    topics = _resolve_topics(topic, leitidee)
    if not topics:
        console.print("\n[red]No topics selected![/red]")
        console.print("Use --topic or --leitidee; see 'mathfeed topics' for the catalog.")
        raise typer.Exit(1)

    config = EngineConfig.from_settings(get_settings())
    if difficulty is not None:
        config.initial_difficulty = difficulty
    if mode is not None:
        config.scoring_mode = mode

    asyncio.run(_run_feed(topics, config, limit))


async def _run_feed(topics: list[TopicRef], config: EngineConfig, limit: int) -> None:
    console.print("\n[bold cyan]mathfeed[/bold cyan] - Adaptive Practice", style="bold")
    console.print("=" * 40)
    console.print(", ".join(t.label() for t in topics), style=STYLES["dim"])

    settings = get_settings()
    if not settings.has_generator_configured():
        console.print("[yellow]No generator credentials configured, using offline exercises.[/yellow]")

    async with ExerciseGeneratorClient(settings) as client:
        engine = PracticeEngine(client, config)
        engine.select_topics(topics)
        served = 0
        try:
            with console.status("Loading exercises..."):
                exercise = await engine.load()

            while exercise is not None:
                served += 1
                console.print()
                display_exercise(exercise, served)

                start_time = time.monotonic()
                answer, hints_used, skipped = await _read_answer(exercise)
                report = engine.submit_answer(
                    answer,
                    hints_used=hints_used,
                    time_spent=time.monotonic() - start_time,
                    skipped=skipped,
                )
                display_report(report)

                if limit and served >= limit:
                    break
                exercise = engine.next_exercise()
                if exercise is None:
                    with console.status("Loading more exercises..."):
                        exercise = await engine.load()

        except (KeyboardInterrupt, EOFError):
            console.print("\n\n[yellow]Practice interrupted.[/yellow]")
        finally:
            await engine.close()

    _display_session_summary(engine)


@app.command()
def topics(
    leitidee: Optional[str] = typer.Option(
        None,
        "--leitidee", "-l",
        help="Only show one guiding idea",
    ),
) -> None:
    """List the local topic catalog."""
    table = Table(title="Topic Catalog")
    table.add_column("Leitidee", style="cyan")
    table.add_column("Thema", style="magenta")
    table.add_column("Unterthemen")

    for idea, themes in TOPIC_CATALOG.items():
        if leitidee and idea != leitidee:
            continue
        for thema, subtopics in themes.items():
            table.add_row(idea, thema, ", ".join(subtopics))

    console.print(table)


@app.command()
def score(
    difficulty: int = typer.Option(5, "--difficulty", "-d", min=1, max=10, help="Exercise difficulty"),
    hints: int = typer.Option(0, "--hints", help="Hints used"),
    seconds: float = typer.Option(0.0, "--seconds", "-s", help="Time spent (0 = unknown)"),
    streak: int = typer.Option(0, "--streak", help="Correct answers in a row before this one"),
    mode: ScoringMode = typer.Option(ScoringMode.FORMAL, "--mode", "-m", help="XP formula"),
    wrong: bool = typer.Option(False, "--wrong", help="Score a wrong answer"),
    skipped: bool = typer.Option(False, "--skipped", help="Score a skipped exercise"),
) -> None:
    """Show the XP breakdown for a hypothetical answer."""
    outcome = score_answer(
        mode,
        difficulty=difficulty,
        hints_used=hints,
        time_spent_seconds=seconds,
        was_skipped=skipped,
        was_correct=not wrong and not skipped,
        correct_streak=streak,
        live_streak_bonus=get_settings().live_streak_bonus,
    )

    table = Table(title=f"XP ({outcome.mode})", show_header=False)
    table.add_column("Part", style="cyan")
    table.add_column("XP", justify="right")
    for part, value in outcome.breakdown.to_dict().items():
        table.add_row(part, str(value))
    console.print(table)


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")

    app()


if __name__ == "__main__":
    main()

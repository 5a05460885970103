"""
Typer CLI for cognitive-os.

Commands:
    cogos plan                 - Compose the next training session
    cogos skills               - List skill ratings
    cogos profile              - Show per-domain averages
    cogos modules              - List training modules and their skills
    cogos record MODULE        - Record a session of trial outcomes
    cogos history              - Show completed sessions
    cogos stats MODULE         - Show aggregate stats for a module
    cogos reset                - Reset every skill to the default rating
    cogos clear-history        - Delete all recorded sessions

Usage:
    cogos plan --minutes 30 --seed 7
    cogos record symbol_memory --outcomes 110101 --level 6
    cogos skills --weakest 5
"""

from __future__ import annotations

import json
import random
import sys
from datetime import timedelta
from functools import lru_cache
from typing import NoReturn

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from cognitive_os.core.catalog import DEFAULT_RATING
from cognitive_os.core.errors import CognitiveOSError
from cognitive_os.core.trial import Trial
from cognitive_os.learning.skill_graph import SkillLevel, estimate_difficulty_rating
from cognitive_os.study.session_composer import PlanUnavailable
from cognitive_os.study.training_service import TrainingService, build_service
from config import get_settings

app = typer.Typer(
    help="cognitive-os CLI: skill ratings, training history and session planning",
    no_args_is_help=True,
)

console = Console()


# ========================================
# Helpers
# ========================================


@lru_cache(maxsize=1)
def _service() -> TrainingService:
    """Build the training service once per process."""
    return build_service(get_settings())


def _fail(message: str) -> NoReturn:
    rprint(f"[red]✗[/red] {message}")
    raise typer.Exit(code=1)


def _level_style(level: SkillLevel) -> str:
    color = level.color
    if len(color) == 4:  # #rgb -> #rrggbb
        color = "#" + "".join(c * 2 for c in color[1:])
    return color


def _parse_outcomes(value: str) -> str:
    if not value or any(c not in "01" for c in value):
        raise typer.BadParameter("Outcomes must be a string of 1 (correct) and 0 (incorrect)")
    return value


# ========================================
# Planning
# ========================================


@app.command("plan")
def plan_session(
    minutes: float | None = typer.Option(None, "--minutes", "-m", help="Session length in minutes"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the variety pick"),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
) -> None:
    """
    Compose the next training session.

    60% of the time goes to modules for your two weakest skills, 40% to a
    variety module. Sessions are shortened when you have trained a lot today.
    """
    settings = get_settings()
    service = _service() if seed is None else build_service(settings, rng=random.Random(seed))

    try:
        plan = service.compose_session(minutes if minutes is not None else settings.default_session_minutes)
    except ValueError as e:
        _fail(str(e))

    if isinstance(plan, PlanUnavailable):
        _fail(f"No session plan available: {plan.reason}")

    if as_json:
        typer.echo(json.dumps(plan.to_dict(), indent=2))
        return

    console.print(Markdown(service.explain(plan)))


# ========================================
# Skills
# ========================================


@app.command("skills")
def list_skills(
    weakest: int | None = typer.Option(None, "--weakest", min=0, help="Show the N weakest skills"),
    strongest: int | None = typer.Option(None, "--strongest", min=0, help="Show the N strongest skills"),
    category: str | None = typer.Option(None, "--category", "-c", help="Only skills in this domain"),
) -> None:
    """List skill ratings."""
    if weakest is not None and strongest is not None:
        _fail("Use either --weakest or --strongest, not both")

    store = _service().skill_store
    if weakest is not None:
        skills, title = store.get_weakest_skills(weakest), f"Weakest {weakest} Skills"
    elif strongest is not None:
        skills, title = store.get_strongest_skills(strongest), f"Strongest {strongest} Skills"
    else:
        skills, title = store.get_all_skills(), "Skills"

    if category:
        skills = [s for s in skills if s.category == category]
        title = f"{title} ({category})"

    table = Table(title=title, show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Domain", style="dim")
    table.add_column("Rating", justify="right")
    table.add_column("Level")
    table.add_column("Trials", justify="right", style="dim")

    for skill in skills:
        level = skill.level
        table.add_row(
            skill.name,
            skill.category or "-",
            f"{skill.rating:.0f}",
            f"[{_level_style(level)}]{level.label}[/]",
            str(skill.trial_count),
        )

    console.print(table)


@app.command("profile")
def show_profile() -> None:
    """Show average ratings per domain plus weakest and strongest skills."""
    profile = _service().skill_store.get_cognitive_profile()

    table = Table(title="Cognitive Profile", show_header=True)
    table.add_column("Domain", style="cyan")
    table.add_column("Skills", justify="right", style="dim")
    table.add_column("Avg Rating", justify="right")
    table.add_column("Level")

    for domain in profile.domains.values():
        level = SkillLevel.from_rating(domain.avg_rating)
        table.add_row(
            domain.name,
            str(len(domain.skills)),
            f"{domain.avg_rating:.0f}",
            f"[{_level_style(level)}]{level.label}[/]",
        )

    table.add_section()
    table.add_row("Overall", "", f"{profile.overall_rating:.0f}", "", style="bold")
    console.print(table)

    rprint(f"\n[bold]Weakest:[/bold] {', '.join(f'{s.name} ({s.rating:.0f})' for s in profile.weakest)}")
    rprint(f"[bold]Strongest:[/bold] {', '.join(f'{s.name} ({s.rating:.0f})' for s in profile.strongest)}")


@app.command("modules")
def list_modules() -> None:
    """List training modules and the skills each one trains."""
    store = _service().skill_store

    table = Table(title="Training Modules", show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Name")
    table.add_column("Skills", style="dim")

    for module_id in store.module_map:
        names = [s.name for s in store.get_module_skills(module_id)]
        table.add_row(module_id, store.module_map.module_name(module_id), ", ".join(names))

    console.print(table)


@app.command("reset")
def reset_skills(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset every skill to the default rating."""
    if not yes and not typer.confirm("Reset all skill ratings?"):
        raise typer.Abort()

    _service().skill_store.reset_skills()
    rprint(f"[green]✓[/green] All skills reset to {DEFAULT_RATING:.0f}")


# ========================================
# Activity
# ========================================


@app.command("record")
def record_session(
    module_id: str = typer.Argument(..., help="Module that was trained"),
    outcomes: str = typer.Option(
        ..., "--outcomes", "-o", callback=_parse_outcomes, help="Trial results, e.g. 110101"
    ),
    difficulty: float | None = typer.Option(
        None, "--difficulty", "-d", help="Trial difficulty on the rating scale (800-2400)"
    ),
    level: float | None = typer.Option(
        None, "--level", "-l", min=0, max=10, help="Module difficulty level on a 0-10 scale"
    ),
    minutes: float | None = typer.Option(
        None, "--minutes", "-t", min=0, help="Session length; back-dates its start"
    ),
) -> None:
    """
    Record one training session.

    Each character of --outcomes is one trial: 1 for correct, 0 for
    incorrect. Every trial updates the skills the module trains. Sessions
    are logged after the fact, so pass --minutes to keep their real length.
    """
    if difficulty is not None and level is not None:
        _fail("Use either --difficulty or --level, not both")

    if level is not None:
        difficulty = estimate_difficulty_rating({"level": level})
    if difficulty is None:
        difficulty = DEFAULT_RATING

    service = _service()
    try:
        trials = [Trial(correct=c == "1", difficulty=difficulty) for c in outcomes]
        started_at = None
        if minutes is not None:
            started_at = service.activity_log.now() - timedelta(minutes=minutes)
        handle = service.start_session(module_id, started_at=started_at)
        for trial in trials:
            service.record_trial(handle, trial)
        report = service.end_session(handle)
    except (CognitiveOSError, ValidationError) as e:
        _fail(str(e))

    summary = report.summary
    rprint(f"\n[bold cyan]Session recorded: {module_id}[/bold cyan]")
    rprint(f"  Trials: {summary.total_trials}")
    rprint(f"  Accuracy: {summary.accuracy:.0%}")
    rprint(f"  Duration: {report.session.duration_seconds / 60:.1f} min")
    if summary.fatigue_dropoff > 0:
        rprint(f"  [yellow]Accuracy dropped {summary.fatigue_dropoff:.0%} in the second half[/yellow]")

    # Net change per skill across the session
    changes: dict[str, tuple[float, float]] = {}
    for update in report.rating_updates:
        start = changes.get(update.skill_id, (update.old_rating, update.new_rating))[0]
        changes[update.skill_id] = (start, update.new_rating)

    if not changes:
        rprint("  [dim]No skills updated[/dim]")
        return

    table = Table(title="Rating Changes", show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Change", justify="right")

    for skill_id, (before, after) in changes.items():
        skill = service.skill_store.get_skill(skill_id)
        delta = after - before
        style = "green" if delta > 0 else "red" if delta < 0 else "dim"
        table.add_row(
            skill.name if skill else skill_id,
            f"{before:.0f}",
            f"{after:.0f}",
            f"[{style}]{delta:+.1f}[/{style}]",
        )

    console.print(table)


@app.command("history")
def show_history(
    module: str | None = typer.Option(None, "--module", "-m", help="Only sessions of this module"),
) -> None:
    """Show completed training sessions, oldest first."""
    sessions = _service().activity_log.get_session_history(module)
    if not sessions:
        rprint("[yellow]⚠[/yellow] No sessions recorded")
        return

    table = Table(title=f"Session History ({len(sessions)})", show_header=True)
    table.add_column("Started", style="dim")
    table.add_column("Module", style="cyan")
    table.add_column("Trials", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Duration", justify="right", style="dim")

    for session in sessions:
        table.add_row(
            session.timestamp.strftime("%Y-%m-%d %H:%M"),
            session.module_id,
            str(session.trial_count),
            f"{session.accuracy:.0%}",
            f"{session.duration_seconds:.0f}s",
        )

    console.print(table)


@app.command("stats")
def show_stats(
    module_id: str = typer.Argument(..., help="Module to summarize"),
) -> None:
    """Show aggregate statistics for one module."""
    stats = _service().activity_log.get_module_stats(module_id)

    table = Table(title=f"Stats: {module_id}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Sessions", str(stats.total_sessions))
    table.add_row("Trials", str(stats.total_trials))
    table.add_row("Avg Accuracy", f"{stats.avg_accuracy:.0%}")
    table.add_row("Avg Reaction Time", f"{stats.avg_reaction_time_ms:.0f} ms")
    console.print(table)

    if stats.recent_sessions:
        rprint("\n[bold]Recent sessions:[/bold]")
        for recent in stats.recent_sessions:
            rprint(f"  {recent.timestamp:%Y-%m-%d %H:%M}  {recent.trials} trials  {recent.accuracy:.0%}")


@app.command("clear-history")
def clear_history(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every recorded session."""
    if not yes and not typer.confirm("Delete all recorded sessions?"):
        raise typer.Abort()

    _service().activity_log.clear_all_sessions()
    rprint("[green]✓[/green] Session history cleared")


def main() -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    app()


if __name__ == "__main__":
    main()

"""Interactive CLI application."""
import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from learnpath.clock import SystemClock
from learnpath.config import DEFAULT_DB_PATH
from learnpath.badges import visible_badges
from learnpath.engine import ProgressEvent, ProgressionEngine
from learnpath.errors import ProgressionError
from learnpath.gate import parse_unit_id
from learnpath.ledger import level_progress, xp_to_next_level
from learnpath.logging import bind_context, configure_logging
from learnpath.quests import quest_progress, quest_summary
from learnpath.seed import is_seeded, seed_all
from learnpath.storage import SqliteStore

console = Console()

STATUS_COLORS = {
    "locked": "dim",
    "available": "cyan",
    "in-progress": "yellow",
    "completed": "green",
}


def night_owl(clock):
    """Predicate for the hidden ``study_after_midnight`` badge."""
    def predicate(condition_id: str, stats) -> bool:
        return condition_id == "study_after_midnight" and clock.now().hour < 5
    return predicate


def announce(event: ProgressEvent) -> None:
    payload = event.payload
    if event.kind == "xp_gained":
        console.print(f"[green]+{payload['amount']} XP[/green] [dim]{payload['reason']}[/dim]")
    elif event.kind == "level_up":
        console.print(f"[bold magenta]Level up! You are now level {payload['level']}[/bold magenta]")
    elif event.kind == "streak_extended":
        console.print(f"[yellow]Streak: {payload['streak']} days[/yellow]")
    elif event.kind == "badge_unlocked":
        console.print(f"[bold yellow]Badge unlocked: {payload['badge_id']}[/bold yellow]")
    elif event.kind == "quest_completed":
        console.print(f"[green]Quest complete: {payload['quest_id']}[/green] [dim](claim it in 'quests')[/dim]")
    elif event.kind == "quest_unlocked":
        console.print(f"[cyan]New quest available: {payload['quest_id']}[/cyan]")


def show_welcome(engine: ProgressionEngine):
    ledger = engine.ledger
    console.print(Panel(
        f"[bold]learnpath[/bold]\n[dim]Level {ledger.level} | {ledger.total_xp} XP | "
        f"streak {ledger.current_streak}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due items"),
        ("exercise", "Complete an exercise"),
        ("dashboard", "Level, streak and badges"),
        ("quests", "Quest board"),
        ("plan", "Curriculum days"),
        ("pomodoro", "Log a focus session"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_review_session(engine: ProgressionEngine, items: list) -> int:
    if not items:
        console.print("[yellow]Nothing due for review right now![/yellow]")
        return 0
    console.print(f"\n[bold]Review Session[/bold] ({len(items)} items)\n")
    for i, item in enumerate(items, 1):
        console.print(Panel(
            f"{item.title}\n[dim]{item.subject} | {item.difficulty}[/dim]",
            title=f"Item {i}/{len(items)}", border_style="cyan",
        ))
        quality = IntPrompt.ask(
            "Rate your recall (0=forgot, 3=hard, 4=good, 5=easy)", choices=["0", "1", "2", "3", "4", "5"],
        )
        updated = engine.record_review(item.id, quality)
        console.print(f"[dim]Next review in {updated.review.interval_days} day(s)[/dim]\n")
    return len(items)


def cmd_review(engine: ProgressionEngine):
    run_review_session(engine, engine.due_reviews(limit=15))


def cmd_exercise(engine: ProgressionEngine):
    pending = [item for item in engine.snapshot.items.values() if not item.completed]
    if not pending:
        console.print("[green]All exercises completed![/green]")
        return
    for i, item in enumerate(pending, 1):
        console.print(f"  [cyan]{i}[/cyan]) {item.title} [dim]({item.subject}, {item.difficulty})[/dim]")
    choice = IntPrompt.ask("Select exercise", choices=[str(i) for i in range(1, len(pending) + 1)])
    score = IntPrompt.ask("Score (0-100)", default=100)
    engine.complete_exercise(pending[choice - 1].id, score)


def cmd_dashboard(engine: ProgressionEngine):
    ledger = engine.ledger
    stats = engine.stats()
    progress = level_progress(ledger)
    bar_filled = int(progress / 5)
    bar = f"[magenta]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/magenta]"
    console.print(Panel(
        f"[bold]Level {ledger.level}[/bold]  {bar} {xp_to_next_level(ledger)} XP to next level\n"
        f"Total XP: [bold]{ledger.total_xp}[/bold]  |  Streak: [bold]{ledger.current_streak}[/bold] "
        f"(best {ledger.best_streak})",
        title="Progress Dashboard", border_style="blue",
    ))

    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Completion", justify="right")
    for subject, pct in sorted(stats.subject_completion.items()):
        table.add_row(subject, f"{pct}%")
    console.print(table)

    console.print(f"\n  Exercises: [bold]{stats.exercises_completed}[/bold]  |  "
                  f"Avg score: [bold]{stats.average_score}%[/bold]  |  "
                  f"Pomodoros: [bold]{stats.pomodoro_sessions}[/bold]  |  "
                  f"Hours: [bold]{stats.total_hours}[/bold]")

    badges = visible_badges(engine.snapshot.badges)
    table = Table(title="Badges")
    table.add_column("Badge")
    table.add_column("Tier")
    table.add_column("Status")
    for badge in badges:
        status = "[green]Unlocked[/green]" if badge.unlocked else "[dim]Locked[/dim]"
        table.add_row(badge.name, badge.tier, status)
    console.print(table)


def cmd_quests(engine: ProgressionEngine):
    quests = engine.snapshot.quests
    summary = quest_summary(quests)
    table = Table(title=f"Quests ({summary['completed']}/{summary['total']} completed)")
    table.add_column("Id", style="cyan")
    table.add_column("Quest")
    table.add_column("Kind")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    for quest in quests:
        color = STATUS_COLORS[quest.status]
        status = quest.status + (" (claimed)" if quest.claimed_at else "")
        table.add_row(
            quest.id, quest.title, quest.kind,
            f"{quest.objective.current}/{quest.objective.target} ({quest_progress(quest)}%)",
            f"[{color}]{status}[/{color}]",
        )
    console.print(table)

    claimable = [q for q in quests if q.status == "completed" and q.claimed_at is None]
    for quest in claimable:
        if Prompt.ask(f"Claim {quest.reward_xp} XP for '{quest.title}'?", choices=["y", "n"], default="y") == "y":
            engine.claim_quest_reward(quest.id)


def cmd_plan(engine: ProgressionEngine):
    accessible = set(engine.accessible_days())
    table = Table(title="Curriculum")
    table.add_column("Day", justify="right")
    table.add_column("Title")
    table.add_column("Done", justify="right")
    table.add_column("Status")
    for unit in engine.snapshot.units:
        if unit.completed:
            status = "[green]Done[/green]"
        elif unit.sequence_number in accessible:
            status = "[cyan]Open[/cyan]"
        else:
            status = "[dim]Locked[/dim]"
        table.add_row(str(unit.sequence_number), unit.title, f"{unit.completion_ratio:.0f}%", status)
    console.print(table)

    raw = Prompt.ask("Mark a day complete (e.g. day-3, Enter to skip)", default="")
    if not raw:
        return
    day = parse_unit_id(raw)
    if day is None:
        console.print(f"[red]Not a day: {raw}[/red]")
        return
    if not engine.is_day_accessible(day):
        console.print(f"[red]Day {day} is locked. Finish the previous day first.[/red]")
        return
    engine.complete_unit(day)
    console.print(f"[green]Day {day} complete![/green]")


def cmd_pomodoro(engine: ProgressionEngine):
    minutes = IntPrompt.ask("Minutes focused", default=25)
    stats = engine.log_pomodoro(minutes)
    console.print(f"[green]Session logged.[/green] {stats.pomodoro_sessions} sessions, {stats.total_hours} hours total")


def main():
    configure_logging(level="WARNING")
    bind_context(db_path=DEFAULT_DB_PATH)
    store = SqliteStore(DEFAULT_DB_PATH)
    first_run = not asyncio.run(is_seeded(store))
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    asyncio.run(seed_all(store))
    if first_run:
        console.print("[green]Ready![/green]\n")

    clock = SystemClock()
    engine = asyncio.run(ProgressionEngine.load(store, clock, custom_badges=night_owl(clock)))
    engine.subscribe(announce)
    show_welcome(engine)

    commands = {
        "review": cmd_review,
        "exercise": cmd_exercise,
        "dashboard": cmd_dashboard,
        "quests": cmd_quests,
        "plan": cmd_plan,
        "pomodoro": cmd_pomodoro,
    }
    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        try:
            if choice in commands:
                engine.roll_over_quests()
                commands[choice](engine)
                asyncio.run(engine.save(store))
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow, keep the streak alive![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except ProgressionError as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

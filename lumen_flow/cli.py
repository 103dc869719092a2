"""Command-line interface for Lumen Flow notifications.

Provides commands for:
- Running the nudge evaluator once or on a schedule
- Viewing and managing a user's notifications
- Viewing and editing notification settings
- Recording daily focus plans and marking their actions
- Starting the API server
"""

import asyncio
import signal
import sys
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lumen_flow import __version__
from lumen_flow.models import init_db
from lumen_flow.models.database import get_db_session
from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind
from lumen_flow.services.daily_focus_service import DailyFocusService
from lumen_flow.services.notification_service import NotificationService
from lumen_flow.services.run_log_service import RunLogService
from lumen_flow.services.settings_service import NotificationSettingsService
from lumen_flow.utils.config import load_config, set_config
from lumen_flow.utils.log_setup import configure_logging

console = Console()


# --- Utility Functions ---


def get_severity_style(severity: NotificationSeverity) -> str:
    """Get rich style for a notification severity."""
    styles = {
        NotificationSeverity.CRITICAL: "bold red",
        NotificationSeverity.WARN: "yellow",
        NotificationSeverity.INFO: "cyan",
    }
    return styles.get(severity, "white")


def parse_instant(value: str | None) -> datetime | None:
    """Parse an ISO-8601 instant. Naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_clock_time(value: str | None) -> time | None:
    """Parse an HH:MM time-of-day option."""
    if value is None:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Expected HH:MM, got {value!r}")


def parse_plan_date(value: str | None, timezone: str) -> date:
    """Parse a YYYY-MM-DD option, defaulting to today in the configured time zone."""
    if not value:
        return datetime.now(ZoneInfo(timezone)).date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


def format_time(value: time | None) -> str:
    return value.strftime("%H:%M") if value else "-"


# --- Main CLI Group ---


@click.group()
@click.version_option(version=__version__, prog_name="Lumen Flow")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx, config):
    """Lumen Flow - notification nudges for your workspace.

    Use 'lumen <command> --help' for more information about a command.
    """
    ctx.ensure_object(dict)

    app_config = load_config(config)
    set_config(app_config)
    ctx.obj["config"] = app_config
    configure_logging(app_config.logging)

    init_db()


@cli.command("init-db")
def init_db_command():
    """Create database tables."""
    # Tables are created by the group callback
    console.print("[green]✓[/green] Database initialized")


# --- Nudge Commands ---


@cli.group()
def nudges():
    """Nudge evaluator commands."""
    pass


@nudges.command("run")
@click.option("--at", "at", help="Evaluate as if it were this ISO-8601 instant (UTC if naive)")
@click.pass_context
def nudges_run(ctx, at):
    """Run the nudge evaluator once across all users."""
    from lumen_flow.nudges.evaluator import NudgeEvaluator

    try:
        now = parse_instant(at)
    except ValueError:
        console.print(f"[red]Invalid instant: {at}[/red]")
        sys.exit(1)

    result = NudgeEvaluator(ctx.obj["config"]).run(now=now)

    table = Table(title="Notifications created")
    table.add_column("Rule", style="cyan")
    table.add_column("Created", justify="right")
    for kind in RuleKind:
        table.add_row(kind.value, str(result.created_by_rule.get(kind.value, 0)))
    console.print(table)

    summary = (
        f"Users checked: {result.users_checked}\n"
        f"Notifications created: [green]{result.notifications_created}[/green]\n"
        f"Errors: {'[red]' if result.errors else ''}{len(result.errors)}{'[/red]' if result.errors else ''}"
    )
    if result.deadline_exceeded:
        summary += "\n[red]Run deadline exceeded; remaining users were skipped[/red]"
    console.print(Panel(summary, title="Nudge Run"))

    for error in result.errors:
        console.print(f"[red]✗[/red] {error}")


@nudges.command("schedule")
@click.pass_context
def nudges_schedule(ctx):
    """Run the nudge evaluator on its configured interval (foreground)."""
    from lumen_flow.nudges.scheduler import NudgeScheduler

    config = ctx.obj["config"]
    if not config.nudges.enabled:
        console.print("[yellow]Nudges are disabled in config (nudges.enabled).[/yellow]")
        sys.exit(1)
    scheduler = NudgeScheduler(config)

    console.print(Panel(
        f"[green]Starting nudge scheduler[/green]\n"
        f"Interval: [cyan]{config.nudges.interval_minutes} minutes[/cyan]\n"
        f"Time zone: [cyan]{config.nudges.timezone}[/cyan]",
        title="Scheduler Starting",
    ))

    async def main():
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        await scheduler.start()
        console.print("[green]Scheduler started. Press Ctrl+C to stop.[/green]")
        await stop_event.wait()
        console.print("\n[yellow]Shutting down...[/yellow]")
        await scheduler.stop()

    asyncio.run(main())


@nudges.command("history")
@click.option("--limit", "-n", default=10, help="Number of runs to show")
def nudges_history(limit):
    """Show recent nudge runs."""
    with get_db_session() as db:
        runs = RunLogService(db).get_recent_runs(limit=limit)

        if not runs:
            console.print("[dim]No nudge runs recorded.[/dim]")
            return

        table = Table(title=f"Nudge Runs ({len(runs)})")
        table.add_column("ID", style="dim", width=5)
        table.add_column("Started (UTC)", width=20)
        table.add_column("Duration", justify="right")
        table.add_column("Users", justify="right")
        table.add_column("Created", justify="right")
        table.add_column("Errors", justify="right")

        for run in runs:
            errors = f"[red]{run.errors}[/red]" if run.errors else "0"
            if run.deadline_exceeded:
                errors += " [red](deadline)[/red]"
            table.add_row(
                str(run.id),
                run.started_at.strftime("%Y-%m-%d %H:%M:%S"),
                f"{run.duration_seconds:.1f}s",
                str(run.users_checked),
                str(run.notifications_created),
                errors,
            )

        console.print(table)


# --- Notification Commands ---


@cli.group()
def notifications():
    """Notification inbox commands."""
    pass


@notifications.command("list")
@click.argument("user_id")
@click.option("--unread", is_flag=True, help="Only unread notifications")
@click.option("--severity", "-s", type=click.Choice([s.value for s in NotificationSeverity]),
              help="Filter by severity")
@click.option("--type", "-t", "rule", type=click.Choice([k.value for k in RuleKind]),
              help="Filter by rule type")
@click.option("--limit", "-n", default=20, help="Number of notifications to show")
def notifications_list(user_id, unread, severity, rule, limit):
    """List a user's notifications."""
    with get_db_session() as db:
        service = NotificationService(db)
        items, total = service.list_notifications(
            user_id,
            severity=NotificationSeverity(severity) if severity else None,
            type=RuleKind(rule) if rule else None,
            unread_only=unread,
            limit=limit,
        )

        if not items:
            console.print("[dim]No notifications found.[/dim]")
            return

        unread_count = service.get_unread_count(user_id)
        table = Table(title=f"Notifications ({len(items)} of {total}, {unread_count} unread)")
        table.add_column("ID", style="dim", width=5)
        table.add_column("", width=1)
        table.add_column("Severity", width=8)
        table.add_column("Title", style="white", min_width=20, max_width=50)
        table.add_column("Created (UTC)", width=16)

        for item in items:
            table.add_row(
                str(item.id),
                "" if item.is_read else "●",
                Text(item.severity.value, style=get_severity_style(item.severity)),
                item.title[:50],
                item.created_at.strftime("%Y-%m-%d %H:%M"),
            )

        console.print(table)


@notifications.command("read")
@click.argument("user_id")
@click.argument("notification_ids", type=int, nargs=-1, required=True)
def notifications_read(user_id, notification_ids):
    """Mark notifications as read."""
    with get_db_session() as db:
        count = NotificationService(db).mark_as_read(user_id, list(notification_ids))
    console.print(f"[green]✓[/green] Marked {count} notification(s) as read")


@notifications.command("unread")
@click.argument("user_id")
@click.argument("notification_ids", type=int, nargs=-1, required=True)
def notifications_unread(user_id, notification_ids):
    """Mark notifications as unread."""
    with get_db_session() as db:
        count = NotificationService(db).mark_as_unread(user_id, list(notification_ids))
    console.print(f"[green]✓[/green] Marked {count} notification(s) as unread")


@notifications.command("delete")
@click.argument("user_id")
@click.argument("notification_ids", type=int, nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def notifications_delete(user_id, notification_ids, yes):
    """Delete notifications."""
    if not yes:
        if not click.confirm(f"Delete {len(notification_ids)} notification(s)?"):
            return

    with get_db_session() as db:
        count = NotificationService(db).delete_notifications(user_id, list(notification_ids))
    console.print(f"[green]✓[/green] Deleted {count} notification(s)")


# --- Settings Commands ---


@cli.group()
def settings():
    """Notification settings commands."""
    pass


def _print_settings(s) -> None:
    muted = ", ".join(f"{m['type']}:{m['id']}" for m in s.muted_entities or []) or "-"
    lines = [
        f"Quiet hours: [cyan]{format_time(s.quiet_hours_start)} - {format_time(s.quiet_hours_end)}[/cyan]",
        f"Nudges: {'[green]on[/green]' if s.nudges_enabled else '[red]off[/red]'}",
        f"Critical only: {'[yellow]yes[/yellow]' if s.critical_only else 'no'}",
        f"Daily digest: {'on at ' + format_time(s.digest_time) if s.digest_daily else 'off'}",
        f"Channels: in-app={s.channel_inapp} email={s.channel_email} "
        f"slack={s.channel_slack} discord={s.channel_discord}",
        f"Muted: {muted}",
    ]
    console.print(Panel("\n".join(lines), title=f"Settings for {s.user_id}"))


@settings.command("show")
@click.argument("user_id")
def settings_show(user_id):
    """Show a user's notification settings (creates defaults if missing)."""
    with get_db_session() as db:
        _print_settings(NotificationSettingsService(db).get_or_create(user_id))


@settings.command("set")
@click.argument("user_id")
@click.option("--quiet-start", help="Quiet hours start (HH:MM)")
@click.option("--quiet-end", help="Quiet hours end (HH:MM)")
@click.option("--critical-only/--all", "critical_only", default=None,
              help="Only deliver critical notifications")
@click.option("--nudges/--no-nudges", "nudges_enabled", default=None, help="Enable or disable nudges")
@click.option("--mute", "mute", multiple=True, help="Mute an entity (TYPE:ID)")
@click.option("--unmute", "unmute", multiple=True, help="Unmute an entity (TYPE:ID)")
def settings_set(user_id, quiet_start, quiet_end, critical_only, nudges_enabled, mute, unmute):
    """Update a user's notification settings."""
    start = parse_clock_time(quiet_start)
    end = parse_clock_time(quiet_end)

    with get_db_session() as db:
        service = NotificationSettingsService(db)
        updated = service.update(
            user_id,
            quiet_hours_start=start,
            quiet_hours_end=end,
            critical_only=critical_only,
            nudges_enabled=nudges_enabled,
        )

        try:
            for ref in mute:
                entity_type, _, entity_id = ref.partition(":")
                updated = service.mute_entity(user_id, entity_type, entity_id)
            for ref in unmute:
                entity_type, _, entity_id = ref.partition(":")
                updated = service.unmute_entity(user_id, entity_type, entity_id)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

        _print_settings(updated)


# --- Daily Focus Commands ---


@cli.group()
def focus():
    """Daily focus plan commands."""
    pass


@focus.command("show")
@click.argument("user_id")
@click.option("--date", "-d", "plan_date", help="Plan date (YYYY-MM-DD, defaults to today)")
@click.pass_context
def focus_show(ctx, user_id, plan_date):
    """Show a user's focus plan and the state of its actions."""
    day = parse_plan_date(plan_date, ctx.obj["config"].nudges.timezone)

    with get_db_session() as db:
        plan = DailyFocusService(db).get_plan(user_id, day)
        if plan is None:
            console.print(f"[dim]No focus plan for {user_id} on {day}.[/dim]")
            return

        table = Table(title=f"Focus for {user_id} on {day}")
        table.add_column("Action ID", style="dim")
        table.add_column("Priority", width=8)
        table.add_column("Title", style="white", min_width=20, max_width=50)
        table.add_column("State", width=9)

        for action in plan.actions:
            if action.is_started:
                state = "[green]started[/green]"
            elif action.deferred:
                state = "[yellow]deferred[/yellow]"
            else:
                state = "[dim]pending[/dim]"
            table.add_row(action.action_id, action.priority_level or "-", action.title[:50], state)

        console.print(table)


@focus.command("save")
@click.argument("user_id")
@click.option("--date", "-d", "plan_date", help="Plan date (YYYY-MM-DD, defaults to today)")
@click.option("--from-file", "-f", "plan_file", type=click.Path(exists=True),
              help="YAML or JSON file with focus_theme and top_actions")
@click.option("--action", "-a", "actions", multiple=True, help="Top action title (repeatable)")
@click.pass_context
def focus_save(ctx, user_id, plan_date, plan_file, actions):
    """Store a user's focus plan, replacing any plan for the same date."""
    day = parse_plan_date(plan_date, ctx.obj["config"].nudges.timezone)

    focus_theme = None
    top_actions = [{"title": title} for title in actions]
    if plan_file:
        with open(plan_file) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            console.print(f"[red]Plan file must contain a mapping: {plan_file}[/red]")
            sys.exit(1)
        focus_theme = data.get("focus_theme")
        top_actions = list(data.get("top_actions") or []) + top_actions

    if not top_actions:
        console.print("[red]Give at least one --action or a --from-file plan[/red]")
        sys.exit(1)

    with get_db_session() as db:
        plan = DailyFocusService(db).save_plan(user_id, day, focus_theme, top_actions)
        console.print(f"[green]✓[/green] Saved focus for {user_id} on {day} with {len(plan.actions)} action(s)")


@focus.command("complete")
@click.argument("user_id")
@click.argument("action_id")
def focus_complete(user_id, action_id):
    """Mark a focus action as started."""
    with get_db_session() as db:
        action = DailyFocusService(db).complete_action(user_id, action_id)
    if action is None:
        console.print(f"[red]No focus action {action_id} for {user_id}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] Completed {action_id}")


@focus.command("defer")
@click.argument("user_id")
@click.argument("action_id")
def focus_defer(user_id, action_id):
    """Defer a focus action."""
    with get_db_session() as db:
        action = DailyFocusService(db).defer_action(user_id, action_id)
    if action is None:
        console.print(f"[red]No focus action {action_id} for {user_id}[/red]")
        sys.exit(1)
    console.print(f"[yellow]→[/yellow] Deferred {action_id}")


# --- Server Command ---


@cli.command()
@click.option("--host", default=None, help="Host to bind to (defaults to api.host)")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to (defaults to api.port)")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev mode)")
@click.pass_context
def server(ctx, host, port, reload):
    """Start the API server."""
    import uvicorn

    api_config = ctx.obj["config"].api
    host = host or api_config.host
    port = port or api_config.port

    console.print(Panel(
        f"Starting API server at [cyan]http://{host}:{port}[/cyan]\n"
        f"API docs at [cyan]http://{host}:{port}/docs[/cyan]",
        title="Lumen Flow API",
    ))

    uvicorn.run(
        "lumen_flow.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    cli()

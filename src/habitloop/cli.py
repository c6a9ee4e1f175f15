"""Flask CLI commands for HabitLoop."""

from __future__ import annotations

import click
from flask import Flask


def _resolve_user(ctx, email: str, password: str | None):
    from .services.auth import create_user, get_user_by_email

    user = get_user_by_email(email, ctx.session_factory)
    if user is not None:
        return user
    if not password:
        raise click.ClickException(f"No account for {email}; pass --password to create one.")
    return create_user(email=email, password=password, session_factory=ctx.session_factory)


def init_app(app: Flask) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitloop-seed")
    @click.option("--demo", is_flag=True, default=False, help="Seed demo habits, logs and identity")
    @click.option("--email", required=True, help="Account that receives the data")
    @click.option("--password", default=None, help="Create the account with this password if missing")
    @click.option("--reset", is_flag=True, default=False, help="Delete the account's data first")
    def habitloop_seed(demo: bool, email: str, password: str | None, reset: bool) -> None:
        """Seed application data for one account."""

        from .extensions import get_context
        from .services.admin_tasks import reset_user_data, run_demo_seed

        ctx = get_context()
        user = _resolve_user(ctx, email, password)
        if reset:
            reset_user_data(ctx.session_factory, user_id=user.id)
            click.echo(f"Cleared data for {user.email}.")
        if not demo:
            click.echo("No seed requested. Use --demo to seed demo data.")
            return
        summary = run_demo_seed(ctx.session_factory, user_id=user.id, today=ctx.today())
        ctx.tracker.invalidate(user_id=user.id)
        click.echo(
            f"Demo seed completed: {summary.habits} habits, {summary.logs} logs, "
            f"{summary.scorecard_items} scorecard items, {summary.bad_habits} bad habits."
        )

    @app.cli.command("habitloop-export")
    @click.option("--email", required=True, help="Account to export")
    @click.option(
        "--output-dir",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory for the archive (defaults to <data dir>/exports)",
    )
    def habitloop_export(email: str, output_dir: str | None) -> None:
        """Export JSON/CSV/Markdown files and PNG charts into a zip file."""

        from pathlib import Path

        from .extensions import get_context
        from .services.admin_tasks import run_export

        ctx = get_context()
        user = _resolve_user(ctx, email, None)
        target = Path(output_dir) if output_dir else ctx.config.exports_dir
        click.echo("Starting export...")
        path = run_export(
            target,
            ctx.session_factory,
            user_id=user.id,
            today=ctx.today(),
            version=ctx.config.EXPORT_VERSION,
            retention=ctx.config.EXPORT_RETENTION,
        )
        click.echo(f"Export written: {path}")

    @app.cli.command("habitloop-recompute-streaks")
    @click.option("--email", required=True, help="Account whose streaks are recomputed")
    def habitloop_recompute_streaks(email: str) -> None:
        """Rebuild the cached streak counters from the logs."""

        from .extensions import get_context

        ctx = get_context()
        user = _resolve_user(ctx, email, None)
        results = ctx.tracker.recompute_all(user_id=user.id)
        click.echo(f"Recomputed streaks for {len(results)} habits.")

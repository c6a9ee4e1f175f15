"""Flask CLI commands."""

from __future__ import annotations

from habitloop.services.auth import get_user_by_email


def test_seed_creates_account_and_demo_data(app):
    runner = app.test_cli_runner()
    result = runner.invoke(
        args=["habitloop-seed", "--demo", "--email", "demo@example.com", "--password", "Sup3rSecret"]
    )
    assert result.exit_code == 0, result.output
    assert "Demo seed completed: 4 habits" in result.output

    ctx = app.extensions["habitloop"]
    user = get_user_by_email("demo@example.com", ctx.session_factory)
    assert len(ctx.habit_repo.list_habits(user_id=user.id)) == 4


def test_seed_requires_existing_account_or_password(app):
    result = app.test_cli_runner().invoke(args=["habitloop-seed", "--demo", "--email", "ghost@example.com"])
    assert result.exit_code != 0
    assert "pass --password" in result.output


def test_seed_reset_without_demo(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["habitloop-seed", "--demo", "--email", "demo@example.com", "--password", "Sup3rSecret"])
    result = runner.invoke(args=["habitloop-seed", "--reset", "--email", "demo@example.com"])
    assert result.exit_code == 0
    assert "Cleared data" in result.output
    assert "Use --demo" in result.output

    ctx = app.extensions["habitloop"]
    user = get_user_by_email("demo@example.com", ctx.session_factory)
    assert ctx.habit_repo.list_habits(user_id=user.id, include_inactive=True) == []


def test_export_and_recompute(app, tmp_path):
    runner = app.test_cli_runner()
    runner.invoke(args=["habitloop-seed", "--demo", "--email", "demo@example.com", "--password", "Sup3rSecret"])

    result = runner.invoke(
        args=["habitloop-export", "--email", "demo@example.com", "--output-dir", str(tmp_path / "out")]
    )
    assert result.exit_code == 0, result.output
    assert "Export written:" in result.output
    assert list((tmp_path / "out").glob("habitloop_export_*.zip"))

    result = runner.invoke(args=["habitloop-recompute-streaks", "--email", "demo@example.com"])
    assert result.exit_code == 0
    assert "Recomputed streaks for 4 habits." in result.output

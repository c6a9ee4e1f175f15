"""Settings routes: theme preference, export downloads and import."""

from __future__ import annotations

from flask import Response, flash, g, request, send_file

from ...errors import ValidationError, persistence_guard
from ...extensions import get_context
from ...logging_config import get_logger
from ...services import admin_tasks
from ...services.export import (
    export_csv,
    export_filename,
    export_json,
    export_markdown,
    load_json_export,
)
from ...services.progress import export_stats
from ..common import current_user_id, login_required, respond, validate_json
from . import bp
from .forms import Theme, ThemeForm

logger = get_logger(__name__)

THEME_KEY = "theme"
EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
    "markdown": "text/markdown",
}


@bp.get("/theme")
@login_required
def get_theme():
    ctx = get_context()
    with persistence_guard("load theme"):
        setting = ctx.settings_repo.get(THEME_KEY, user_id=current_user_id())
    return respond({"theme": setting.value if setting else Theme.SYSTEM.value})


@bp.put("/theme")
@login_required
@validate_json(ThemeForm)
def set_theme():
    form: ThemeForm = g.form
    ctx = get_context()
    with persistence_guard("save theme"):
        ctx.settings_repo.set(
            THEME_KEY, form.theme.value, user_id=current_user_id(), description="UI theme"
        )
    return respond({"theme": form.theme.value})


@bp.get("/export")
@login_required
def export_data():
    """Download ``?format=json|csv|markdown`` or a full ``zip`` archive."""

    ctx = get_context()
    user_id = current_user_id()
    today = ctx.today()
    kind = request.args.get("format", "json").lower()

    if kind == "zip":
        path = admin_tasks.run_export(
            ctx.config.exports_dir / str(user_id),
            ctx.session_factory,
            user_id=user_id,
            today=today,
            version=ctx.config.EXPORT_VERSION,
            retention=ctx.config.EXPORT_RETENTION,
        )
        return send_file(path, mimetype="application/zip", as_attachment=True, download_name=path.name)
    if kind not in EXPORT_FORMATS:
        raise ValidationError({"format": ["Use json, csv, markdown or zip."]})

    bundle = admin_tasks.collect_bundle(
        ctx.session_factory, user_id=user_id, today=today, version=ctx.config.EXPORT_VERSION
    )
    if kind == "json":
        body = export_json(bundle)
    elif kind == "csv":
        body = export_csv(bundle.habits, bundle.habit_logs)
    else:
        active = [habit for habit in bundle.habits if habit.is_active]
        stats = export_stats(active, bundle.habit_logs, today)
        body = export_markdown(bundle.identity, active, stats, today)

    logger.info("Export downloaded", extra={"user_id": user_id, "format": kind})
    return Response(
        body,
        mimetype=EXPORT_FORMATS[kind],
        headers={"Content-Disposition": f"attachment; filename={export_filename(kind, today)}"},
    )


@bp.post("/import")
@login_required
def import_data():
    """Import a JSON export, sent as the request body or as an uploaded ``file``."""

    upload = request.files.get("file")
    text = upload.read() if upload is not None else request.get_data()
    if not text:
        raise ValidationError({"file": ["Send a JSON export."]})
    bundle = load_json_export(text)

    ctx = get_context()
    user_id = current_user_id()
    summary = admin_tasks.import_bundle(bundle, ctx.session_factory, user_id=user_id)
    ctx.tracker.recompute_all(user_id=user_id)
    ctx.tracker.invalidate(user_id=user_id)
    flash(f"Imported {summary.habits} habits and {summary.logs} log entries.", "success")
    return respond(
        {
            "habits": summary.habits,
            "logs": summary.logs,
            "scorecard_items": summary.scorecard_items,
            "bad_habits": summary.bad_habits,
            "identity": summary.identity,
        }
    )

"""Progress routes: chart series, heat maps and dashboard summary."""

from __future__ import annotations

from flask import Response, request

from ...errors import ValidationError
from ...extensions import get_context
from ...services.charts import build_heatmap_chart, build_progress_chart, figure_png_bytes
from ...services.dates import CHART_WINDOW_DAYS, HEATMAP_WINDOW_DAYS
from ..common import current_user_id, login_required, query_day, query_int, respond
from . import bp

MAX_WINDOW_DAYS = 366


def _flag(name: str) -> bool:
    return request.args.get(name, "0").lower() in {"1", "true", "yes"}


def _habit_id() -> int | None:
    raw = request.args.get("habit_id")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError({"habit_id": ["Must be a whole number."]}) from None


def _series_points():
    ctx = get_context()
    return ctx.tracker.series(
        user_id=current_user_id(),
        days=query_int("days", CHART_WINDOW_DAYS, maximum=MAX_WINDOW_DAYS),
        due_only=_flag("due_only"),
        end=query_day("end", default=ctx.today()),
    )


def _heat_cells():
    ctx = get_context()
    return ctx.tracker.heat_map(
        user_id=current_user_id(),
        days=query_int("days", HEATMAP_WINDOW_DAYS, maximum=MAX_WINDOW_DAYS),
        habit_id=_habit_id(),
        end=query_day("end", default=ctx.today()),
    )


@bp.get("/series")
@login_required
def series():
    """Daily completion points; ``due_only=1`` counts only habits due each day."""

    return respond([point.to_dict() for point in _series_points()])


@bp.get("/heatmap")
@login_required
def heatmap():
    """Binary cells for one habit, or graduated cells across all habits."""

    return respond([cell.to_dict() for cell in _heat_cells()])


@bp.get("/summary")
@login_required
def summary():
    ctx = get_context()
    return respond(ctx.tracker.summary(user_id=current_user_id()))


@bp.get("/chart.png")
@login_required
def chart_png():
    """PNG of the series (default) or of the heat map with ``kind=heatmap``."""

    kind = request.args.get("kind", "series")
    if kind == "series":
        figure = build_progress_chart(_series_points())
    elif kind == "heatmap":
        figure = build_heatmap_chart(_heat_cells())
    else:
        raise ValidationError({"kind": ["Use 'series' or 'heatmap'."]})
    return Response(figure_png_bytes(figure), mimetype="image/png")

"""Database and extension wiring for HabitLoop."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .context import AppContext, create_app_context

EXTENSION_KEY = "habitloop"


def init_db(app: Flask) -> AppContext:
    """Build the engine, schema and repositories for ``app``."""

    config: BaseConfig = app.config["HABITLOOP_CONFIG"]
    ctx = create_app_context(config)
    app.extensions[EXTENSION_KEY] = ctx
    return ctx


def get_context() -> AppContext:
    """Return the context of the active Flask app."""

    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError:  # pragma: no cover - exercised only on misconfigured apps
        raise RuntimeError("Database not initialized; call init_db(app) first") from None

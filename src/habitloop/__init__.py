"""HabitLoop application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "habitloop.blueprints.auth"
    yield "habitloop.blueprints.identity"
    yield "habitloop.blueprints.habits"
    yield "habitloop.blueprints.progress"
    yield "habitloop.blueprints.scorecard"
    yield "habitloop.blueprints.bad_habits"
    yield "habitloop.blueprints.settings"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name or app.config.get("ENV"))
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["HABITLOOP_CONFIG"] = config_obj
    app.json.sort_keys = False

    setup_logging(config_obj)
    _register_blueprints(app)
    # Imported lazily so model classes can be used without building an engine.
    from .blueprints.common import register_error_handlers
    from .extensions import init_db

    init_db(app)
    register_error_handlers(app)
    _cli.init_app(app)

    get_logger(__name__).info(
        "Application started",
        extra={"config": config_cls.__name__, "database": config_obj.DATABASE_URL.split("://", 1)[0]},
    )
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["create_app"]

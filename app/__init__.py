"""Application factory and bootstrap helpers."""
from __future__ import annotations

import importlib
import json
from typing import Optional

import click
from flask import Flask, jsonify
from flask.cli import AppGroup, with_appcontext
from werkzeug.exceptions import HTTPException

from config.logging_config import setup_logging
from services import ServiceException

from .config import AppConfig
from .extensions import ProgressTracker, get_tracker

ERROR_STATUS = {
    "VALIDATION_ERROR": 400,
    "INVALID_INPUT": 400,
    "NOT_FOUND": 404,
    "DUPLICATE_CODE": 409,
    "HAS_DEPENDENTS": 409,
    "ALREADY_BOUND": 409,
}


def _import_blueprint(module_name: str, attr_name: str):
    module = importlib.import_module(module_name)
    return getattr(module, attr_name)


def _format_seed_summary(stats: dict) -> str:
    return (
        f"created={stats.get('created', 0)}, "
        f"existing={stats.get('existing', 0)}, "
        f"reactivated={stats.get('reactivated', 0)}"
    )


def _register_catalog_cli(app: Flask) -> None:
    catalog_cli = AppGroup("catalog", help="Master data catalog commands")

    @catalog_cli.command("seed")
    @click.option("--quiet", is_flag=True, help="Hide the per-node detail")
    @with_appcontext
    def catalog_seed(quiet: bool) -> None:
        from seed_master_data import seed_master_data

        stats = seed_master_data(get_tracker().catalog, verbose=not quiet)
        click.echo("[OK] Seed completed: " + _format_seed_summary(stats))

    @catalog_cli.command("import")
    @click.argument("source", type=click.File("r", encoding="utf-8"))
    @with_appcontext
    def catalog_import(source) -> None:
        result = get_tracker().catalog.import_bulk(source.read())
        click.echo(
            "[OK] Imported: "
            f"categories={result.categories}, activities={result.activities}, subTasks={result.sub_tasks}"
        )
        for failure in result.failed:
            click.echo(f"[WARN] {failure['path']}: {failure['message']}")

    @catalog_cli.command("export")
    @click.argument("target", type=click.File("w", encoding="utf-8"), default="-")
    @with_appcontext
    def catalog_export(target) -> None:
        json.dump(get_tracker().catalog.export_all(), target, indent=2, ensure_ascii=False)
        target.write("\n")

    app.cli.add_command(catalog_cli)


def _register_clis(app: Flask) -> None:
    _register_catalog_cli(app)


def _register_blueprints(app: Flask) -> None:
    for module_name, attr_name in [
        ("blueprint_master_data", "master_data_bp"),
        ("blueprint_progress", "progress_bp"),
    ]:
        app.register_blueprint(_import_blueprint(module_name, attr_name))
    app.logger.info("Core blueprints registered")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceException)
    def handle_service_exception(exc: ServiceException):
        status = ERROR_STATUS.get(exc.code, 400)
        app.logger.warning(f"{exc.code}: {exc.message}")
        return jsonify({"success": False, **exc.to_dict()}), status

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({
            "success": False,
            "message": exc.description,
            "code": exc.name.upper().replace(" ", "_"),
            "details": {},
        }), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        app.logger.error(f"Unhandled error: {exc}", exc_info=True)
        return jsonify({
            "success": False,
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }), 500


def _register_routes(app: Flask) -> None:
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})


def create_app(config: Optional[AppConfig] = None) -> Flask:
    app = Flask(__name__)

    cfg = config or AppConfig()
    cfg.init_app(app)

    if app.config.get("LOG_TO_FILE"):
        setup_logging(app)

    progress = ProgressTracker(app)

    _register_clis(app)
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_routes(app)

    if app.config.get("MASTER_DATA_SEED"):
        from seed_master_data import seed_master_data

        stats = seed_master_data(progress.catalog)
        app.logger.info("Master data seeded: " + _format_seed_summary(stats))

    return app


__all__ = ["create_app"]

"""HTTP API exposing every check as a JSON endpoint."""

from __future__ import annotations

from typing import Any, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from exposcope import __version__
from exposcope.checks import CHECKS
from exposcope.checks.runner import run_check_with_timeout, run_checks
from exposcope.core.config import Settings, get_settings
from exposcope.core.logger import get_logger

logger = get_logger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _settings() -> Settings:
    return current_app.config["EXPOSCOPE_SETTINGS"]


def _check_kwargs() -> dict[str, Any]:
    return current_app.config.get("EXPOSCOPE_CHECK_KWARGS", {})


def _respond(result: dict[str, Any]):
    # Timeout entries carry no statusCode
    status = result.get("statusCode", 504) if "error" in result else 200
    return jsonify(result), status


@api_bp.get("")
async def run_all():
    """Run every check against ?url= concurrently."""
    url = request.args.get("url")
    if not url:
        return jsonify(error="URL parameter is required", statusCode=400), 400

    results = await run_checks(url, settings=_settings(), **_check_kwargs())
    return jsonify(results), 200


@api_bp.get("/checks")
def list_checks():
    return jsonify(
        checks=[{"name": name, "description": check.description} for name, check in CHECKS.items()],
        version=__version__,
    ), 200


@api_bp.get("/<name>")
async def run_one(name: str):
    """Run a single check against ?url=."""
    if name not in CHECKS:
        return jsonify(error=f"Unknown check: {name}", statusCode=404), 404

    settings = _settings()
    result = await run_check_with_timeout(
        name,
        request.args.get("url"),
        settings.api.check_timeout,
        settings=settings,
        **_check_kwargs(),
    )
    return _respond(result)


def create_app(settings: Optional[Settings] = None, **check_kwargs: Any) -> Flask:
    """
    Create the Flask application.

    Args:
        settings: Application settings, cached settings when omitted
        **check_kwargs: Passed to every check (transport, resolver, renderer)

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config["EXPOSCOPE_SETTINGS"] = settings or get_settings()
    app.config["EXPOSCOPE_CHECK_KWARGS"] = check_kwargs
    app.json.sort_keys = False

    app.register_blueprint(api_bp)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(error="Not found", statusCode=404), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error="Method not allowed", statusCode=405), 405

    @app.errorhandler(500)
    def internal_error(e):
        logger.error("Unhandled API error", error=str(e))
        return jsonify(error="Internal server error", statusCode=500), 500

    return app

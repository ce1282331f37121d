# wardrobe/utils/error_handlers.py
"""
Centralized Flask error handlers.
Keeps routes.py files clean and guarantees consistent JSON/HTML responses.
"""
from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for, Response
from flask_login import logout_user

from .exceptions import AuthenticationError, AuthorizationError, WardrobeError
from .logging import get_logger

log = get_logger(__name__)


def wants_json() -> bool:
    return request.accept_mimetypes.accept_json and not request.accept_mimetypes.accept_html


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(403)
    def forbidden(error: Exception) -> tuple[Response, int]:
        if wants_json():
            return jsonify(error="forbidden"), 403
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(error: Exception) -> tuple[Response, int]:
        if wants_json():
            return jsonify(error="not_found"), 404
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def internal_error(error: Exception) -> tuple[Response, int]:
        log.exception("Unhandled exception")
        if wants_json():
            return jsonify(error="internal_server_error"), 500
        return render_template("errors/500.html"), 500

    @app.errorhandler(WardrobeError)
    def handle_wardrobe_error(error: WardrobeError) -> tuple[Response, int] | Response:
        log.warning("WardrobeError: %s | payload=%s", error, error.payload)
        if wants_json():
            response = {"error": error.message, "details": error.payload}
            return jsonify(response), error.status_code
        if error.status_code == 404:
            return render_template("errors/404.html", message=error.message), 404
        flash(error.message, "danger")
        return redirect(request.referrer or url_for("main.index"))

    @app.errorhandler(AuthenticationError)
    def handle_authentication_error(error: AuthenticationError) -> tuple[Response, int] | Response:
        session.clear()
        logout_user()
        if wants_json():
            return jsonify({"error": error.message, "details": error.payload}), 401
        flash(error.message, "warning")
        return redirect(url_for("user.login"))

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(error: AuthorizationError) -> tuple[Response, int]:
        if wants_json():
            return jsonify({"error": error.message, "details": error.payload}), 403
        return render_template("errors/403.html", message=error.message), 403

    log.info("Error handlers registered")

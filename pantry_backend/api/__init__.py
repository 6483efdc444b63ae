"""API package wiring for the pantry backend."""

from flask import Flask, jsonify

from .ai import bp as ai_bp
from .auth import attach_user_from_access_cookie, bp as auth_bp
from .inventory import bp as inventory_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.before_request(attach_user_from_access_cookie)

    app.register_blueprint(auth_bp)
    app.register_blueprint(ai_bp)
    app.register_blueprint(inventory_bp)

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify(message="Method Not Allowed"), 405

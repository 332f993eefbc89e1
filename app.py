import logging

from flask import Flask, jsonify, session
from werkzeug.exceptions import HTTPException

from config import Settings, get_settings
from routes.auth import auth_bp, http_status, status_message
from services.api_client import ApiError
from services.auth_service import LoginStatus

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None):
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = settings.secret_key

    app.register_blueprint(auth_bp, url_prefix="/auth")

    # ----------------------------
    # Error handlers
    # - Never show a stacktrace
    # - 401/403 from the backend: session expired, drop it
    # ----------------------------

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code in (LoginStatus.UNAUTHORIZED, LoginStatus.FORBIDDEN):
            session.clear()
        return jsonify({"code": err.status_code, "msg": status_message(err, "API error")}), http_status(err, 502)

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"code": err.code, "msg": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("Unhandled error: %s", err)
        return jsonify({"code": int(LoginStatus.SERVER_ERROR), "msg": "Unexpected error, please try again."}), 500

    return app


if __name__ == "__main__":
    settings = get_settings()
    create_app(settings).run(host=settings.host, port=settings.port, debug=settings.debug)

import logging

from flask import Blueprint, jsonify, request, session
from werkzeug.exceptions import BadRequest

from services import auth_service as svc
from services.api_client import ApiError
from services.auth_service import LoginStatus

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

STATUS_MESSAGES = {
    LoginStatus.UNAUTHORIZED: "Login expired or invalid credentials, please log in again.",
    LoginStatus.FORBIDDEN: "You do not have permission to do this.",
    LoginStatus.LOCKED: "Account locked, try again later.",
    LoginStatus.SERVER_ERROR: "Server error, please try again.",
}


def status_message(err: ApiError, default: str) -> str:
    """User-facing message for a failed call, preferring the backend's own msg."""
    msg = (err.payload or {}).get("msg")
    if msg:
        return msg
    try:
        return STATUS_MESSAGES.get(LoginStatus(err.status_code), default)
    except ValueError:
        return str(err) or default


def http_status(err: ApiError, default: int) -> int:
    if getattr(err, "http_status", None):
        return err.http_status
    if err.status_code and err.status_code >= 400:
        return err.status_code
    return default


def _form() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        raise BadRequest("Expected a JSON object")
    return data


def _field(form: dict, key: str) -> str:
    value = form.get(key)
    return "" if value is None else str(value)


def _store_token(data) -> None:
    payload = data.get("data") if isinstance(data, dict) else None
    token = payload.get("access_token") if isinstance(payload, dict) else None
    if token:
        session["access_token"] = token


def _error(err: ApiError, default: str):
    return jsonify({"code": err.status_code, "msg": status_message(err, default)}), http_status(err, 400)


@auth_bp.get("/captcha")
def captcha():
    return jsonify(svc.get_code_img())


@auth_bp.post("/login")
def login():
    form = _form()
    try:
        data = svc.login(
            _field(form, "username").strip(),
            _field(form, "password"),
            _field(form, "code").strip(),
            _field(form, "uuid"),
        )
    except ApiError as e:
        return _error(e, "Login failed")
    _store_token(data)
    return jsonify(data)


@auth_bp.post("/login/sms")
def sms_login():
    form = _form()
    try:
        data = svc.sms_login(_field(form, "mobile").strip(), _field(form, "code").strip())
    except ApiError as e:
        return _error(e, "Login failed")
    _store_token(data)
    return jsonify(data)


@auth_bp.post("/sms/send")
def send_sms_code():
    try:
        data = svc.send_sms_code(_field(_form(), "mobile").strip())
    except ApiError as e:
        return _error(e, "Could not send code")
    return jsonify(data)


@auth_bp.post("/register")
def register():
    try:
        data = svc.register(_form())
    except ApiError as e:
        return _error(e, "Registration failed")
    return jsonify(data)


@auth_bp.post("/refresh")
def refresh():
    # failures reach the app handler, which drops the session on 401/403
    data = svc.refresh_token()
    _store_token(data)
    return jsonify(data)


@auth_bp.post("/logout")
def logout():
    try:
        svc.logout()
    except ApiError as e:
        # the local session is dropped regardless
        logger.info("Backend logout failed: %s", e)
    session.clear()
    return jsonify({"code": int(LoginStatus.SUCCESS), "msg": "Logged out"})


@auth_bp.get("/me")
def me():
    return jsonify(svc.get_info())


@auth_bp.get("/user")
def current_user():
    return jsonify(svc.get_current_user_info())


@auth_bp.get("/validate")
def validate():
    return jsonify(svc.validate_token())


@auth_bp.post("/password")
def change_password():
    form = _form()
    try:
        data = svc.change_password(_field(form, "oldPassword"), _field(form, "newPassword"))
    except ApiError as e:
        return _error(e, "Could not change password")
    return jsonify(data)

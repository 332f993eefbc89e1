import json as jsonlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import requests
from flask import has_request_context, session

from config import get_settings

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200
REPEAT_SUBMIT_METHODS = {"POST", "PUT"}


class ApiError(Exception):
    def __init__(self, status_code: int | None, payload: dict | None = None, message: str | None = None):
        super().__init__(message or _payload_message(payload) or f"API error {status_code}")
        self.status_code = status_code
        self.payload = payload or {}


class ApiTimeoutError(ApiError):
    """The backend did not answer within the request timeout."""


class ApiConnectionError(ApiError):
    """The backend could not be reached."""


class RepeatSubmitError(ApiError):
    """The same submission was sent again before the repeat-submit interval elapsed."""

    http_status = 429


def _payload_message(payload) -> str | None:
    if not isinstance(payload, dict):
        return None
    return payload.get("msg") or payload.get("erro")


@dataclass(frozen=True)
class RequestOptions:
    """Per-request flags, sent by the web client as the isToken/repeatSubmit headers."""

    is_token: bool = True
    repeat_submit: bool = True


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    url: str
    body: Mapping[str, Any] | None = None
    params: Mapping[str, Any] | None = None
    options: RequestOptions | None = None
    timeout: int | None = None  # ms


class TokenProvider(Protocol):
    def get_token(self) -> str | None: ...


class SessionTokenProvider:
    """Reads the access token kept in the Flask session by the auth routes."""

    key = "access_token"

    def get_token(self) -> str | None:
        if not has_request_context():
            return None
        return session.get(self.key)


class StaticTokenProvider:
    def __init__(self, token: str | None = None):
        self.token = token

    def get_token(self) -> str | None:
        return self.token


class RequestExecutor:
    """
    Sends RequestDescriptors to the backend.

    Attaches the bearer token, applies the default timeout, suppresses
    duplicate POST/PUT submissions and normalizes the {code, msg, data}
    envelope into either the decoded body or an ApiError.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        default_timeout_ms: int = 10000,
        repeat_submit_interval_ms: int = 1000,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or SessionTokenProvider()
        self.default_timeout_ms = default_timeout_ms
        self.repeat_submit_interval_ms = repeat_submit_interval_ms
        self._http = http or requests.Session()
        self._lock = threading.Lock()
        self._last_submit: dict[str | None, tuple[str, str, float]] = {}

    def execute(self, descriptor: RequestDescriptor):
        options = descriptor.options or RequestOptions()
        method = descriptor.method.upper()
        url = self.base_url + descriptor.url

        token = self.token_provider.get_token()
        headers = {"Content-Type": "application/json"}
        if options.is_token and token:
            headers["Authorization"] = f"Bearer {token}"

        if options.repeat_submit and method in REPEAT_SUBMIT_METHODS:
            self._check_repeat_submit(token, url, descriptor.body, descriptor.params)

        timeout_ms = descriptor.timeout if descriptor.timeout is not None else self.default_timeout_ms
        body = dict(descriptor.body) if descriptor.body is not None else None
        params = dict(descriptor.params) if descriptor.params is not None else None

        logger.debug("[API] %s %s params=%s", method, url, params)
        try:
            r = self._http.request(method, url, json=body, params=params, headers=headers, timeout=timeout_ms / 1000)
        except requests.Timeout as e:
            logger.warning("[API] Timeout after %sms: %s %s", timeout_ms, method, url)
            raise ApiTimeoutError(None, message=f"Request to {descriptor.url} timed out") from e
        except requests.RequestException as e:
            logger.warning("[API] Connection error: %s %s: %s", method, url, e)
            raise ApiConnectionError(None, message=f"Could not reach backend for {descriptor.url}") from e
        logger.debug("[API] Status: %s", r.status_code)

        try:
            data = r.json() if r.text else {}
        except ValueError as e:
            logger.debug("[API] Error parsing JSON: %s, text: %s", e, r.text[:200])
            data = {"msg": "Invalid response from API", "raw": r.text}

        if r.status_code >= 400:
            logger.info("[API] Error response %s: %s", r.status_code, data)
            raise ApiError(r.status_code, data if isinstance(data, dict) else {"msg": "Error", "data": data})

        code = data.get("code", SUCCESS_CODE) if isinstance(data, dict) else SUCCESS_CODE
        if code != SUCCESS_CODE:
            logger.info("[API] Error envelope code=%s: %s", code, data)
            raise ApiError(code, data)
        return data

    def _check_repeat_submit(self, token: str | None, url: str, body, params) -> None:
        # last submission per session token
        payload = jsonlib.dumps([body, params], sort_keys=True, default=str)
        now = time.monotonic()
        with self._lock:
            last = self._last_submit.get(token)
            if last and last[0] == url and last[1] == payload and (now - last[2]) * 1000 < self.repeat_submit_interval_ms:
                logger.info("[API] Repeat submit suppressed: %s", url)
                raise RepeatSubmitError(None, message="Data is being processed, do not submit again")
            self._last_submit = {
                k: v for k, v in self._last_submit.items()
                if (now - v[2]) * 1000 < self.repeat_submit_interval_ms
            }
            self._last_submit[token] = (url, payload, now)


_executor: RequestExecutor | None = None


def get_executor() -> RequestExecutor:
    global _executor
    if _executor is None:
        settings = get_settings()
        _executor = RequestExecutor(
            settings.api_base,
            default_timeout_ms=settings.request_timeout_ms,
            repeat_submit_interval_ms=settings.repeat_submit_interval_ms,
        )
    return _executor


def set_executor(executor: RequestExecutor | None) -> None:
    global _executor
    _executor = executor


def api(method: str, path: str, json=None, params=None, options: RequestOptions | None = None, timeout: int | None = None):
    return get_executor().execute(RequestDescriptor(
        method=method,
        url=path,
        body=json,
        params=params,
        options=options,
        timeout=timeout,
    ))

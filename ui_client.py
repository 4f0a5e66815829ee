"""HTTP and token helpers shared by the Streamlit client."""
from __future__ import annotations

import base64
import json
import os
from datetime import datetime, timezone

import requests

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
TIMEOUT = 10

UNAUTHORIZED_MESSAGE = "401 Unauthorized (invalid or expired token, or the backend was restarted)."


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# JWT helpers (display only, the signature is not verified)

def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def jwt_payload(token: str) -> dict:
    parts = (token or "").split(".")
    if len(parts) != 3:
        return {}
    try:
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def jwt_is_expired(token: str) -> bool:
    exp = jwt_payload(token).get("exp")
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        return False

    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= (exp_int - 5)


def jwt_username(token: str) -> str:
    p = jwt_payload(token)
    return str(p.get("username") or p.get("sub") or "user")


def jwt_role(token: str) -> str:
    return str(jwt_payload(token).get("role") or "")


# HTTP client (with bearer token)

def _headers(token: str | None) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or f"HTTP {r.status_code}"
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return r.text or f"HTTP {r.status_code}"


def _handle(r: requests.Response):
    if r.status_code == 401:
        raise PermissionError(UNAUTHORIZED_MESSAGE)
    if r.status_code >= 400:
        raise ApiError(r.status_code, _error_message(r))
    if r.status_code == 204 or not r.content:
        return None
    return r.json()


def api_get(path: str, token: str | None = None, params: dict | None = None):
    r = requests.request("GET", f"{API_BASE}{path}", headers=_headers(token), params=params, timeout=TIMEOUT)
    return _handle(r)


def api_post(path: str, payload: dict, token: str | None = None):
    r = requests.request("POST", f"{API_BASE}{path}", headers=_headers(token), json=payload, timeout=TIMEOUT)
    return _handle(r)


def api_put(path: str, payload: dict | None = None, token: str | None = None):
    r = requests.request("PUT", f"{API_BASE}{path}", headers=_headers(token), json=payload, timeout=TIMEOUT)
    return _handle(r)


def api_delete(path: str, token: str | None = None):
    r = requests.request("DELETE", f"{API_BASE}{path}", headers=_headers(token), timeout=TIMEOUT)
    return _handle(r)


def api_login(username: str, password: str) -> str:
    # OAuth2PasswordRequestForm => x-www-form-urlencoded
    r = requests.request(
        "POST",
        f"{API_BASE}/api/auth/login",
        data={"username": username, "password": password},
        timeout=TIMEOUT,
    )
    if r.status_code == 401:
        raise ApiError(401, _error_message(r))
    return _handle(r)["access_token"]

"""Request/response helpers that carry account tokens over HTTP."""

from __future__ import annotations

from typing import Any, Mapping

from starlette.requests import cookie_parser
from starlette.responses import Response

_BEARER_PREFIX = "Bearer "


def cookie_name(name: str) -> str:
    return f"{name}_access_token"


def _headers(request: Any) -> Mapping[str, str]:
    headers = getattr(request, "headers", request)
    if isinstance(headers, Mapping) and not hasattr(headers, "getlist"):
        # Plain dicts are case sensitive; normalise them.
        return {str(k).lower(): v for k, v in headers.items()}
    return headers


def get_token(request: Any, name: str) -> str | None:
    """Return the bearer token of ``request`` or ``None``.

    The ``Authorization: Bearer`` header takes precedence over the
    ``<name>_access_token`` cookie. ``request`` may be a Starlette request or
    anything exposing a ``headers`` mapping.
    """
    headers = _headers(request)
    authorization = headers.get("authorization")
    if authorization and authorization.startswith(_BEARER_PREFIX):
        token = authorization[len(_BEARER_PREFIX):].strip()
        return token or None
    raw_cookie = headers.get("cookie")
    if raw_cookie:
        return cookie_parser(raw_cookie).get(cookie_name(name)) or None
    return None


def set_cookie(response: Response, *, hostname: str, token: str, name: str) -> None:
    """Write the session-scoped, HttpOnly access token cookie for ``hostname``."""
    if not isinstance(hostname, str) or not hostname:
        raise ValueError("hostname string is required")
    if not isinstance(token, str) or not token:
        raise ValueError("token string is required")
    # No max_age/expires: the cookie lives as long as the browser session,
    # the token's own exp bounds its validity.
    response.set_cookie(
        cookie_name(name),
        token,
        path="/",
        domain=hostname,
        httponly=True,
        samesite="lax",
    )


def remove_cookie(response: Response, *, name: str) -> None:
    """Clear the access token cookie by expiring it immediately."""
    response.delete_cookie(cookie_name(name), path="/", httponly=True)

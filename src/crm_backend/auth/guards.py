from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import g, request

from ..core.constants import TOKEN_COOKIE_NAME
from ..users.model import User
from .gate import AccessGate
from .policy import Action, Resource


def read_credential() -> Optional[str]:
    """`token` cookie first, then an `Authorization: Bearer` header."""

    token = request.cookies.get(TOKEN_COOKIE_NAME)
    if token and token != "none":
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip() or None
    return None


def current_user() -> User:
    return g.current_user


class RouteGuard:
    """View decorators layered on every protected route."""

    def __init__(self, gate: AccessGate):
        self._gate = gate

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.current_user = self._gate.authenticate(read_credential())
            return view(*args, **kwargs)

        return wrapper

    def allow(self, resource: Resource, action: Action):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = self._gate.authenticate(read_credential())
                self._gate.authorize_operation(user, resource, action)
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator

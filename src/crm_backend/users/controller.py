from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, request

from ..auth.guards import current_user
from ..auth.policy import Action, Resource
from ..common.http import json_body, ok, ok_list
from ..common.serialization import to_json
from ..container import Container
from ..core.constants import API_PREFIX, LOGOUT_COOKIE_SECONDS, TOKEN_COOKIE_NAME
from ..storage.avatar import UploadedImage
from .model import User

logger = logging.getLogger(__name__)

BASE = f"{API_PREFIX}/users"


def present_user(user: User) -> dict[str, Any]:
    out = to_json(user)
    out.pop("passwordHash", None)
    return out


def _uploaded_picture() -> Optional[UploadedImage]:
    file = request.files.get("profilePicture")
    if not file or not file.filename:
        return None
    return UploadedImage(filename=file.filename, content_type=file.mimetype or "application/octet-stream", data=file.read())


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    def _set_token_cookie(response, token: str, max_age: int) -> None:
        response.set_cookie(
            TOKEN_COOKIE_NAME,
            token,
            max_age=max_age,
            httponly=True,
            secure=container.cookie_secure,
            samesite="Strict",
        )

    @app.route(f"{BASE}/login", methods=["POST"], endpoint="users_login")
    def login():
        data = json_body()
        user, token = container.auth_service.login(data.get("email"), data.get("password"))
        response, status = ok({"token": token, "user": present_user(user)})
        _set_token_cookie(response, token, container.token_days * 24 * 60 * 60)
        logger.info("User %s logged in", user.user_id)
        return response, status

    @app.route(f"{BASE}/logout", methods=["GET"], endpoint="users_logout")
    @guard.login_required
    def logout():
        response, status = ok({}, message="Logged out")
        _set_token_cookie(response, "none", LOGOUT_COOKIE_SECONDS)
        return response, status

    @app.route(f"{BASE}/me", methods=["GET"], endpoint="users_me")
    @guard.login_required
    def me():
        return ok(present_user(current_user()))

    @app.route(f"{BASE}/register", methods=["POST"], endpoint="users_register")
    @guard.allow(Resource.USER, Action.CREATE)
    def register_user():
        user = container.user_service.register(json_body(), picture=_uploaded_picture())
        logger.info("User %s registered by %s", user.user_id, current_user().user_id)
        return ok(present_user(user), status=201)

    @app.route(BASE, methods=["GET"], endpoint="users_list")
    @guard.allow(Resource.USER, Action.LIST)
    def list_users():
        return ok_list([present_user(u) for u in container.user_service.list_users()])

    @app.route(f"{BASE}/<user_id>", methods=["GET"], endpoint="users_get")
    @guard.allow(Resource.USER, Action.READ)
    def get_user(user_id: str):
        return ok(present_user(container.user_service.get_user(user_id)))

    @app.route(f"{BASE}/<user_id>", methods=["PUT"], endpoint="users_update")
    @guard.allow(Resource.USER, Action.UPDATE)
    def update_user(user_id: str):
        user = container.user_service.update_user(user_id, json_body(), picture=_uploaded_picture())
        return ok(present_user(user))

    @app.route(f"{BASE}/<user_id>", methods=["DELETE"], endpoint="users_delete")
    @guard.allow(Resource.USER, Action.DELETE)
    def delete_user(user_id: str):
        container.user_service.delete_user(user_id)
        return ok({})

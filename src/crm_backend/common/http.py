from __future__ import annotations

from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import ValidationError
from .serialization import snake_keys, to_json


def ok(data: Any = None, *, status: int = 200, count: Optional[int] = None, message: Optional[str] = None):
    """Success envelope: {success, data?, count?, message?}."""

    body: dict[str, Any] = {"success": True}
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = to_json(data)
    if message:
        body["message"] = message
    return jsonify(body), status


def ok_list(items: list, *, status: int = 200):
    return ok(items, status=status, count=len(items))


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def json_body() -> dict[str, Any]:
    """Request payload as a snake_case dict (JSON body or multipart form fields)."""

    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return snake_keys(payload)
    return snake_keys(request.form.to_dict())


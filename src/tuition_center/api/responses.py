from __future__ import annotations

from typing import Any, Optional

from flask import jsonify


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None, **extra: Any):
    """{success: true, data?, message?, ...extra}"""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    body.update(extra)
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, *, status: int, error: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return jsonify(body), status

from __future__ import annotations

from typing import Any

from flask import request

from ..core.exceptions import ValidationError


def json_body() -> Any:
    """Parsed JSON body; malformed or missing JSON is a validation error."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be valid JSON")
    return data

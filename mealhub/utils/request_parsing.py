"""Helpers for reading JSON request bodies."""
from flask import request

from mealhub.exceptions import ValidationError


def json_body() -> dict:
    """Request JSON as a dict; an absent or malformed body is treated as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def first_of(data: dict, *keys, default=None):
    """Value of the first key present and not None (accepts camelCase/snake_case aliases)."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def parse_int(value, field: str, required: bool = True):
    """
    Parse an integer field.

    Raises:
        ValidationError: if missing (when required) or not an integer.
    """
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} is required')
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'{field} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')

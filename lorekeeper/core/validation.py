"""
Payload validation against pydantic shapes.

Turns pydantic's error list into the flat issue list returned to
clients, one issue per failed field constraint.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from lorekeeper.core.errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)


def to_issues(error: ValidationError) -> list[dict[str, Any]]:
    """Flatten a pydantic ValidationError into client-facing issues."""
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "body"
        issues.append({
            "field": field,
            "message": item.get("msg", "Invalid value"),
            "type": item.get("type", "value_error"),
        })
    return issues


def validate(shape: type[M], value: Any) -> M:
    """
    Validate a decoded JSON value against a shape.
    
    Returns:
        The validated model instance
    
    Raises:
        ValidationFailed: with one issue per violated constraint
    """
    try:
        return shape.model_validate(value)
    except ValidationError as e:
        raise ValidationFailed(to_issues(e)) from e

"""Identifier types shared across models."""

from __future__ import annotations

from typing import Annotated, Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import BeforeValidator


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for ``value`` or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not ObjectId.is_valid(text):
        return None
    try:
        return ObjectId(text)
    except (InvalidId, TypeError):  # pragma: no cover - is_valid already guards
        return None


def _validate_object_id(value: Any) -> ObjectId:
    parsed = parse_object_id(value)
    if parsed is None:
        raise ValueError("Invalid ObjectId")
    return parsed


PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda value: str(value), return_type=str),
]

__all__ = ["PyObjectId", "parse_object_id"]

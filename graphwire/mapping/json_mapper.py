"""Graphwire JSON to typed object mapping.

Thin layer over pydantic's TypeAdapter. Every failure, whether malformed JSON
or a value that does not fit its field, comes out as a
FacebookJsonMappingError naming the field and the raw value. A partially
populated object is never returned.
"""

from functools import lru_cache
from typing import Any, List, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from graphwire.core.exceptions import FacebookJsonMappingError
from graphwire.models.facebook_types import Connection

T = TypeVar("T")


@lru_cache(maxsize=None)
def _type_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or str(target)


def describe_validation_error(error: ValidationError) -> str:
    """Summarize the first problem pydantic found."""
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    message = f"field '{location}': {first.get('msg', 'invalid value')}"
    if "input" in first and first.get("type") != "json_invalid":
        message += f" (raw value: {first['input']!r})"
    if len(details) > 1:
        message += f" [and {len(details) - 1} more error(s)]"
    return message


class JsonMapper:
    """Maps response JSON to pydantic shapes, lists of them, or plain data."""

    def to_object(self, json_text: str, object_type: Optional[Type[T]] = None) -> T:
        """Map a JSON document to ``object_type`` (decoded JSON when None)."""
        target = Any if object_type is None else object_type
        try:
            return _type_adapter(target).validate_json(json_text)
        except ValidationError as e:
            raise FacebookJsonMappingError(
                f"Unable to map JSON to {_type_name(target)}: {describe_validation_error(e)}"
            ) from e

    def to_list(self, json_text: str, object_type: Optional[Type[T]] = None) -> List[T]:
        """Map a JSON array to a list of ``object_type``.

        The API answers ``{}`` instead of ``[]`` for some empty result sets.
        """
        if json_text.strip() == "{}":
            return []
        target = Any if object_type is None else object_type
        return self.to_object(json_text, List[target])

    def convert(self, value: Any, object_type: Optional[Type[T]] = None) -> T:
        """Map already-decoded JSON data to ``object_type``."""
        if object_type is None:
            return value
        try:
            return _type_adapter(object_type).validate_python(value)
        except ValidationError as e:
            raise FacebookJsonMappingError(
                f"Unable to map JSON to {_type_name(object_type)}: {describe_validation_error(e)}"
            ) from e

    def to_connection(
        self, json_text: str, object_type: Optional[Type[T]] = None
    ) -> Connection[T]:
        """Map a ``{"data": [...], "paging": {...}}`` page."""
        target = Any if object_type is None else object_type
        return self.to_object(json_text, Connection[target])

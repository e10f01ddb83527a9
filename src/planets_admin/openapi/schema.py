"""Conversion of data classes and type descriptors into OpenAPI schemas.

Data classes are pydantic models; their field table is read without
creating an instance. Field types map onto a deliberately small set of
OpenAPI primitives: numbers, booleans, date-times and strings.
"""

import datetime
import decimal
import logging
import types
import typing
from typing import Any

from pydantic import BaseModel

from planets_admin.rpc.descriptors import TypeDescriptor

logger = logging.getLogger(__name__)

OBJECT_SCHEMA = {"type": "object"}

NUMBER_TYPES = (int, float, decimal.Decimal)
DATE_TYPES = (datetime.datetime, datetime.date)


def _unwrap_optional(annotation: Any) -> Any:
    """``X | None`` and ``Optional[X]`` become ``X``."""
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _field_schema(annotation: Any) -> dict:
    annotation = _unwrap_optional(annotation)
    if typing.get_origin(annotation) is not None or not isinstance(annotation, type):
        return {"type": "string"}
    # bool is a subclass of int
    if issubclass(annotation, bool):
        return {"type": "boolean"}
    if issubclass(annotation, NUMBER_TYPES):
        return {"type": "number"}
    if issubclass(annotation, DATE_TYPES):
        return {"type": "string", "format": "date-time"}
    return {"type": "string"}


def to_schema(data_class: Any) -> dict:
    """Describe a data class as an object schema.

    Properties follow field declaration order and use the wire name (the
    alias when one is set). Anything that cannot be introspected yields
    the generic ``{"type": "object"}``.
    """
    try:
        if not (isinstance(data_class, type) and issubclass(data_class, BaseModel)):
            raise TypeError(f"{data_class!r} is not a pydantic model")

        properties = {}
        required = []
        for name, field in data_class.model_fields.items():
            key = field.alias or name
            properties[key] = _field_schema(field.annotation)
            if field.is_required():
                required.append(key)
    except Exception as e:
        logger.debug("Falling back to generic object schema for %r: %s", data_class, e)
        return dict(OBJECT_SCHEMA)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def type_to_schema(descriptor: TypeDescriptor) -> dict:
    """Schema fragment for a single parameter or return value."""
    if descriptor.is_array and descriptor.schema_cls is not None:
        return {"type": "array", "items": to_schema(descriptor.schema_cls)}
    if descriptor.schema_cls is not None:
        return to_schema(descriptor.schema_cls)
    if descriptor.type:
        return {"type": descriptor.type}
    return dict(OBJECT_SCHEMA)

"""Validation of untrusted input against pydantic data classes."""

from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from planets_admin.errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)


def _message(error: dict) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ()))
    return f"{loc}: {error['msg']}" if loc else error["msg"]


def validate_schema(model_cls: type[M], data: Any) -> M:
    """Build a ``model_cls`` instance from ``data``.

    Raises ValidationFailed carrying one message per failing field.
    """
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed([_message(err) for err in e.errors()]) from e


def validate_value(adapter: TypeAdapter, value: Any, name: str) -> Any:
    """Validate a single named value with a pydantic TypeAdapter."""
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        raise ValidationFailed([f"{name}: {err['msg']}" for err in e.errors()]) from e

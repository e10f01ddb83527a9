"""Request and response schemas for backend method endpoints.

Every backend method call is ``POST``ed as ``{"args": [...]}``: a JSON
object with a single ``args`` property holding the positional arguments.
"""

from typing import Any

from planets_admin.openapi.metadata import locate_metadata
from planets_admin.openapi.schema import OBJECT_SCHEMA, type_to_schema
from planets_admin.rpc.descriptors import ACCEPTS, RETURNS, TypeDescriptor

NO_ARGUMENTS = "No arguments required (empty array)"


def infer_response_schema(method: Any, controller: type | None, method_name: str) -> dict:
    """Schema of the value returned by a backend method."""
    descriptor = locate_metadata(method, controller, method_name, RETURNS)
    if descriptor is None:
        return dict(OBJECT_SCHEMA)
    return type_to_schema(descriptor)


def _args_items(descriptors: list[TypeDescriptor], schemas: list[dict]) -> dict:
    if not schemas:
        return {}
    if len(schemas) == 1:
        return schemas[0]
    if all(s == schemas[0] for s in schemas[1:]):
        return schemas[0]

    order = ", ".join(
        f"arg{i}: {d.label}" + (" (optional)" if d.optional else "")
        for i, d in enumerate(descriptors)
    )
    return {"oneOf": schemas, "description": f"Arguments in order: {order}"}


def _args_description(descriptors: list[TypeDescriptor]) -> str:
    if not descriptors:
        return NO_ARGUMENTS
    if len(descriptors) == 1:
        return f"Method argument: {descriptors[0].label}"
    return "Method arguments array. Expected order: " + ", ".join(d.label for d in descriptors)


def infer_request_schema(method: Any, controller: type | None, method_name: str) -> dict:
    """Schema of the ``{"args": [...]}`` request body of a backend method."""
    declared = locate_metadata(method, controller, method_name, ACCEPTS)
    if declared is None:
        args: dict[str, Any] = {"type": "array", "items": {}, "description": NO_ARGUMENTS}
    else:
        if isinstance(declared, (list, tuple)):
            descriptors = list(declared)
        else:
            descriptors = [declared]

        required_count = sum(1 for d in descriptors if not d.optional)
        schemas = [type_to_schema(d) for d in descriptors]

        args = {"type": "array", "items": _args_items(descriptors, schemas)}
        if required_count > 0:
            args["minItems"] = required_count
        if descriptors:
            args["maxItems"] = len(descriptors)
        args["description"] = _args_description(descriptors)

    return {
        "type": "object",
        "properties": {"args": args},
        "required": ["args"],
    }

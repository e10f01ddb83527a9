"""Type descriptors for backend method parameters and return values.

A descriptor declares the shape of one argument or of a return value: either
a primitive tag (``type``) or a data class (``schema``), optionally as an
array. The ``returns`` and ``accepts`` decorators attach descriptors to
methods; the OpenAPI generator reads them back.

Descriptors are stored in several places at once: on the decorated object,
on the function it wraps, and in a per-controller map keyed by method name.
The per-controller map is the owned registry; the attributes keep lookups
working when something replaces the method object after decoration.
"""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

RETURNS = "returns"
ACCEPTS = "accepts"
METADATA_KINDS = (RETURNS, ACCEPTS)

CLASS_METADATA_ATTR = "__rpc_metadata__"


def metadata_attr(kind: str) -> str:
    """Attribute name under which a descriptor of ``kind`` sits on a callable."""
    return f"__rpc_{kind}__"


class TypeDescriptor(BaseModel):
    """Declared shape of one parameter or return value."""

    model_config = ConfigDict(frozen=True)

    # declared before ``type`` so the annotation still sees the builtin
    schema_cls: type | None = Field(default=None, validation_alias=AliasChoices("schema_cls", "schema"))
    is_array: bool = Field(default=False, validation_alias=AliasChoices("is_array", "isArray"))
    optional: bool = False
    type: Literal["string", "number", "boolean", "object"] | None = None

    @property
    def label(self) -> str:
        """Human readable type name used in generated descriptions."""
        if self.schema_cls is not None:
            return self.schema_cls.__name__
        return self.type or "object"


def as_descriptor(value: Any) -> TypeDescriptor:
    if isinstance(value, TypeDescriptor):
        return value
    if isinstance(value, dict):
        return TypeDescriptor.model_validate(value)
    raise TypeError(f"Expected a TypeDescriptor or dict, got {type(value).__name__}")


def as_descriptor_list(value: Any) -> tuple[TypeDescriptor, ...]:
    """Normalise a single descriptor or a sequence of them to a tuple."""
    if isinstance(value, (list, tuple)):
        return tuple(as_descriptor(v) for v in value)
    return (as_descriptor(value),)


def controller_metadata(controller: type) -> dict[str, dict[str, Any]]:
    """Return the controller's own metadata map, creating it on first use.

    Only the class's own ``__dict__`` is consulted so subclasses never write
    into a parent's map.
    """
    metadata = vars(controller).get(CLASS_METADATA_ATTR)
    if metadata is None:
        metadata = {kind: {} for kind in METADATA_KINDS}
        setattr(controller, CLASS_METADATA_ATTR, metadata)
    return metadata


def _attach(target: Any, kind: str, value: Any) -> None:
    attr = metadata_attr(kind)
    setattr(target, attr, value)

    fn = getattr(target, "fn", None)
    if fn is not None:
        setattr(fn, attr, value)

    # decorator applied after the wrapper was bound to its class
    owner = getattr(target, "owner", None)
    if owner is not None:
        controller_metadata(owner)[kind][target.name] = value


def returns(descriptor: TypeDescriptor | dict | None = None, **fields: Any):
    """Declare the return type of a backend method.

    Usage::

        @backend_method(allowed=True)
        @returns(schema=UploadFileResult)
        def upload_file(file_data, path=None): ...
    """
    value = as_descriptor(descriptor if descriptor is not None else fields)

    def decorator(target):
        _attach(target, RETURNS, value)
        return target

    return decorator


def accepts(descriptors: TypeDescriptor | dict | list | tuple):
    """Declare the positional parameters of a backend method, in order."""
    value = as_descriptor_list(descriptors)

    def decorator(target):
        _attach(target, ACCEPTS, value)
        return target

    return decorator


def register_method(
    controller: type,
    name: str,
    returns: TypeDescriptor | dict | None = None,
    accepts: TypeDescriptor | dict | list | tuple | None = None,
) -> None:
    """Record descriptors for ``controller.name`` without decorator syntax."""
    metadata = controller_metadata(controller)
    if returns is not None:
        metadata[RETURNS][name] = as_descriptor(returns)
    if accepts is not None:
        metadata[ACCEPTS][name] = as_descriptor_list(accepts)

"""Lookup of type descriptors attached to backend methods."""

from typing import Any

from planets_admin.rpc.descriptors import CLASS_METADATA_ATTR, metadata_attr


def locate_metadata(method: Any, controller: type | None, method_name: str, kind: str) -> Any:
    """Return the descriptor(s) of ``kind`` declared for a method, or None.

    Locations are tried in order, first hit wins:

    1. the controller's metadata map, keyed by method name
    2. an attribute on ``method`` itself
    3. the same attribute on ``controller.<method_name>`` (the live,
       possibly re-wrapped, method)
    4. the same attribute on ``method.fn`` (one more level of wrapping)
    """
    attr = metadata_attr(kind)

    if controller is not None:
        class_map = vars(controller).get(CLASS_METADATA_ATTR) or {}
        found = class_map.get(kind, {}).get(method_name)
        if found is not None:
            return found

    found = getattr(method, attr, None)
    if found is not None:
        return found

    if controller is not None:
        live = getattr(controller, method_name, None)
        found = getattr(live, attr, None)
        if found is not None:
            return found

    fn = getattr(method, "fn", None)
    return getattr(fn, attr, None)

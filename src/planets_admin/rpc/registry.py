"""Backend methods: controller functions reachable over ``POST /api/<action_url>``.

A controller is a plain class whose functions are wrapped with
``backend_method``. The wrapper registers itself on the class when the class
body is executed, and derives the action URL ``<Controller>/<method>``.
The wire format of a call is ``{"args": [...]}`` holding positional
arguments.
"""

import functools
import inspect
import logging
from typing import Any, Callable

from planets_admin.errors import Forbidden, MethodNotFound, RpcArgumentError
from planets_admin.openapi.metadata import locate_metadata
from planets_admin.rpc.descriptors import ACCEPTS, METADATA_KINDS, controller_metadata, metadata_attr

logger = logging.getLogger(__name__)

METHODS_ATTR = "__backend_methods__"
AUTHENTICATED = "authenticated"


class BackendMethod:
    """Wrapper around a controller function registered for remote calls."""

    def __init__(self, fn: Callable, allowed: Any = True):
        functools.update_wrapper(self, fn)
        self.fn = fn
        self.allowed = allowed
        self.name = fn.__name__
        self.owner: type | None = None
        self.action_url: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name
        self.action_url = f"{owner.__name__}/{name}"

        methods = vars(owner).get(METHODS_ATTR)
        if methods is None:
            methods = []
            setattr(owner, METHODS_ATTR, methods)
        methods.append(self)

        metadata = controller_metadata(owner)
        for kind in METADATA_KINDS:
            value = getattr(self, metadata_attr(kind), None)
            if value is None:
                value = getattr(self.fn, metadata_attr(kind), None)
            if value is not None:
                metadata[kind].setdefault(name, value)

    def __get__(self, instance: Any, owner: type | None = None) -> Callable:
        # behaves like a staticmethod
        return self.fn

    def __call__(self, *args, **kwargs):
        return self.fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<BackendMethod {self.action_url or self.name}>"

    def is_allowed(self, user: Any = None) -> bool:
        """Check ``allowed`` against the calling user (``None`` when anonymous).

        ``allowed`` is ``True``/``False``, ``"authenticated"``, a role name,
        or a list of role names.
        """
        allowed = self.allowed
        if allowed is True:
            return True
        if not allowed or user is None:
            return False
        if allowed == AUTHENTICATED:
            return True
        if isinstance(allowed, str):
            return allowed in user.roles
        return any(role in user.roles for role in allowed)


def backend_method(fn: Callable | None = None, *, allowed: Any = True):
    """Register a controller function as a backend method.

    Can be used bare (``@backend_method``) or with options
    (``@backend_method(allowed="admin")``).
    """

    def decorator(func):
        if isinstance(func, staticmethod):
            func = func.__func__
        return BackendMethod(func, allowed=allowed)

    if fn is not None:
        return decorator(fn)
    return decorator


def backend_methods(controller: type) -> list[BackendMethod]:
    """Backend methods declared directly on ``controller``, in declaration order."""
    return list(vars(controller).get(METHODS_ATTR, []))


class RpcDispatcher:
    """Routes action URLs to backend methods and invokes them."""

    def __init__(self, controllers: list[type]):
        self.controllers = list(controllers)
        self._methods: dict[str, BackendMethod] = {}
        for controller in self.controllers:
            for method in backend_methods(controller):
                if method.action_url:
                    self._methods[method.action_url] = method

    @property
    def action_urls(self) -> list[str]:
        return list(self._methods)

    def resolve(self, action_url: str) -> BackendMethod:
        try:
            return self._methods[action_url]
        except KeyError:
            raise MethodNotFound(f"No backend method at {action_url}") from None

    def dispatch(self, action_url: str, args: list | None = None, user: Any = None) -> Any:
        """Run the method at ``action_url`` with positional ``args``."""
        method = self.resolve(action_url)
        if not method.is_allowed(user):
            raise Forbidden(f"Not allowed to call {action_url}")

        args = list(args or [])
        self._check_arguments(method, args)

        logger.debug("Calling %s with %d argument(s)", action_url, len(args))
        return method.fn(*args)

    def _check_arguments(self, method: BackendMethod, args: list) -> None:
        declared = locate_metadata(method, method.owner, method.name, ACCEPTS)
        if declared is not None:
            if not isinstance(declared, (list, tuple)):
                declared = (declared,)
            required = sum(1 for d in declared if not d.optional)
            if not required <= len(args) <= len(declared):
                raise RpcArgumentError(
                    f"{method.action_url} expects {required} to {len(declared)} arguments, got {len(args)}"
                )

        try:
            inspect.signature(method.fn).bind(*args)
        except TypeError as e:
            raise RpcArgumentError(f"{method.action_url}: {e}") from None

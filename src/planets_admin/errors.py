"""Exception hierarchy shared by the service, the RPC layer and the CLI."""


class PlanetsAdminError(Exception):
    """Base class for all application errors."""


class ConfigError(PlanetsAdminError):
    """Raised when required configuration is missing or malformed."""


class StorageError(PlanetsAdminError):
    """Raised when the object storage backend fails."""


class ValidationFailed(PlanetsAdminError):
    """Raised when input data does not satisfy a schema."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(", ".join(errors))


class RpcError(PlanetsAdminError):
    """Base class for backend method dispatch errors."""


class MethodNotFound(RpcError):
    """No backend method is registered under the requested action URL."""


class Forbidden(RpcError):
    """The caller is not allowed to run the backend method."""


class RpcArgumentError(RpcError):
    """The positional arguments do not match the method's declaration."""

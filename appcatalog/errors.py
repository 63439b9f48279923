"""Error taxonomy for the application catalog.

Every component raises one of these so callers can tell a malformed
request from a missing entry, a refused operation or a backend failure.
"""


class CatalogError(Exception):
    """Base exception for all catalog failures."""


class InvalidFormatError(CatalogError):
    """Raised for malformed application identifiers or namespaces."""


class FailedPreconditionError(CatalogError):
    """Raised when a request is well formed but cannot be applied."""


class NotFoundError(CatalogError):
    """Raised when a document, blob or application does not exist."""


class PermissionDeniedError(CatalogError):
    """Raised when the caller is not allowed to perform an operation."""


class InternalError(CatalogError):
    """Raised for backend, serialization and consistency failures."""

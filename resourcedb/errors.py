"""Error taxonomy for resourcedb.

Every core operation either returns a result or raises one of the classes
below. Each class carries the HTTP status code the (external) request layer
is expected to answer with, so that layer only has to read ``status_code``
and ``message``.
"""


class ResourceDBError(Exception):
    """Base class for all errors raised by resourcedb.

    Attributes:
        message: Client-facing message
        status_code: HTTP status the request layer should use
    """

    status_code: int = 400
    default_message: str = "Bad Request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ResourceDBError):
    """Malformed, missing or empty field, non-URL link, reserved topic name."""

    default_message = "Invalid request."


class NotFoundError(ResourceDBError):
    """Resource or topic absent."""

    default_message = "Resource could not be found."


class TopicNotFoundError(NotFoundError):
    """Topic absent when dropping it (the one not-found answered with 404)."""

    status_code = 404
    default_message = "Not Found"


class Unauthorized(ResourceDBError):
    """Password mismatch, raised by the request gating layer."""

    status_code = 401
    default_message = "Unauthorized"


class ConflictError(ResourceDBError):
    """Topic already exists."""

    default_message = "A topic with that name already exists."


class StoreError(ResourceDBError):
    """Any failure surfaced by the underlying document store."""

    default_message = "Bad Request"


__all__ = [
    "ResourceDBError",
    "ValidationError",
    "NotFoundError",
    "TopicNotFoundError",
    "Unauthorized",
    "ConflictError",
    "StoreError",
]

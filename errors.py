"""Typed failures raised by the paste core.

The HTTP layer maps these to status codes (see handlers.py); nothing in the
core knows about transport.
"""


class PasteError(Exception):
    """Base class for every failure the core raises."""


class InvalidIdentifier(PasteError):
    pass


class InvalidExpirationFormat(PasteError):
    def __init__(self, expr):
        super().__init__(f"invalid expiration format: {expr!r}")
        self.expr = expr


class DuplicateIdentifier(PasteError):
    """Insert collided with an existing paste id. Retried by the service."""


class IdentifierExhausted(PasteError):
    pass


class ConstraintViolation(PasteError):
    pass


class ValidationFailed(PasteError):
    pass


class NotFound(PasteError):
    pass


class Unauthorized(PasteError):
    pass


class InvalidSignature(PasteError):
    pass


class Expired(PasteError):
    pass


class StorageUnavailable(PasteError):
    pass

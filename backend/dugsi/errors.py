"""Error taxonomy for the document service.

Every error carries the HTTP status it maps to. Handlers raise these and the
application converts them to ``{"ok": false, "error": ...}`` at the boundary.
"""


class DugsiError(Exception):
    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message


class ValidationError(DugsiError):
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class PayloadTooLarge(DugsiError):
    status_code = 413


class Unauthorized(DugsiError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(DugsiError):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(DugsiError):
    """A record is missing, or it exists but its bytes no longer resolve.

    ``reason`` is ``"record"`` or ``"payload"``. Clients see the same 404 either
    way; the reason is only for logs.
    """

    status_code = 404

    def __init__(self, message: str = "Not found", reason: str = "record"):
        super().__init__(message)
        self.reason = reason


class Conflict(DugsiError):
    status_code = 409


class StorageError(DugsiError):
    def __init__(self, message: str, locator: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.locator = locator
        self.cause = cause


class StorageWriteError(StorageError):
    """The blob sink could not durably write an object."""


class StorageUnavailableError(StorageError):
    """The blob sink is misconfigured or its backing store cannot be reached."""


class BlobMissingError(StorageError):
    """Raised by a sink when the bytes behind a locator are gone."""


class PersistenceError(DugsiError):
    def __init__(self, message: str = "Database error", cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause

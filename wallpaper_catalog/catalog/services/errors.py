class CatalogError(Exception):
    """Base for every error the catalog surfaces to callers.

    `status` is the HTTP status the route layer answers with, `code` a stable
    machine-checkable identifier and `message` a short human-readable text.
    """

    status = 500
    code = "INTERNAL"

    def __init__(self, message: str, *, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        if code is not None:
            self.code = code


class WallpaperValidationError(CatalogError):
    status = 400
    code = "INVALID_BODY"


class NotFoundError(CatalogError):
    status = 404
    code = "NOT_FOUND"


class ConflictError(CatalogError):
    status = 409
    code = "CONFLICT"


class PermissionDeniedError(CatalogError, PermissionError):
    status = 403
    code = "FORBIDDEN"


class UnauthenticatedError(CatalogError):
    status = 401
    code = "UNAUTHENTICATED"


class StorageError(CatalogError):
    status = 500
    code = "STORAGE_ERROR"

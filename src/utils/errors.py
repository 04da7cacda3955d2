"""Custom exception hierarchy for Inkwell.

All application exceptions inherit from :class:`InkwellError`, which
carries an optional ``provider_name`` so error handlers can identify which
backing store (e.g. "redis", "sqlite") caused the failure.

The hierarchy is organized by how the caller is expected to react:

    InkwellError  (base -- catch-all for any Inkwell error)
    +-- NotFoundError          (post absent or soft-deleted -- terminal)
    +-- ConflictError          (stale version -- refresh and retry)
    +-- PermissionDeniedError  (caller does not own the post)
    +-- TransientStoreError    (timeout / connection failure on a store)
    +-- ConfigurationError     (startup / missing config)
        +-- SlugExhaustionError (slug disambiguation cap reached)

Each class also declares the HTTP ``status_code`` the API layer maps it to,
so ``ErrorHandlingMiddleware`` never needs an isinstance ladder.
"""


class InkwellError(Exception):
    """Base exception for all Inkwell errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which store triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[redis] Timed out``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Terminal request errors
# ---------------------------------------------------------------------------

class NotFoundError(InkwellError):
    """Raised when a post does not exist or carries a deletion tombstone."""

    status_code = 404

    def __init__(
        self,
        message: str = "Post not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConflictError(InkwellError):
    """Raised when the caller's expected version no longer matches the store.

    Never retried internally: a conflict means someone else edited the
    post, and the caller should see that edit before trying again.
    """

    status_code = 409

    def __init__(
        self,
        message: str = "Post has been modified by another process. Please refresh and try again.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PermissionDeniedError(InkwellError):
    """Raised when a caller tries to change a post they do not own."""

    status_code = 403

    def __init__(
        self,
        message: str = "You do not have permission to modify this post",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------

class TransientStoreError(InkwellError):
    """Raised on a timeout or connection failure against either store.

    Durable-store callers surface this as retryable (HTTP 503).  The
    volatile-store wrappers catch it and fail open instead.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "Backing store is temporarily unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(InkwellError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SlugExhaustionError(ConfigurationError):
    """Raised when no free slug is found within the attempt cap."""

    def __init__(
        self,
        message: str = "Unable to generate unique slug",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

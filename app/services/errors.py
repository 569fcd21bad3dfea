"""Errors raised by the release service and store."""


class ReleaseError(Exception):
    """Base class for release tracker errors."""


class ReleaseNotFoundError(ReleaseError):
    def __init__(self, release_id: str, detail: str | None = None):
        self.release_id = release_id
        super().__init__(detail or f"Release '{release_id}' not found")


class ReleaseValidationError(ReleaseError):
    """Required field missing or outside the configured catalogue."""


class MalformedInputError(ReleaseError):
    """Import payload or document that cannot be read as releases."""


class StoreUnavailableError(ReleaseError):
    """The document store failed; nothing was applied."""

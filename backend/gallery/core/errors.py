"""
Error taxonomy for the gallery backend.

Each error carries a human-readable `detail` and the HTTP status the
exception handlers map it to.
"""


class GalleryError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class TierConfigurationError(GalleryError):
    """Rank tier set rejected before a write (empty name, duplicate threshold...)."""
    status_code = 400


class PermissionDenied(GalleryError):
    status_code = 403


class NotFound(GalleryError):
    status_code = 404


class InvalidInput(GalleryError):
    status_code = 400


class PersistenceError(GalleryError):
    """The backing store rejected or failed a write."""
    status_code = 503

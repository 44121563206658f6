class RenderError(Exception):
    """Raised when a stored document cannot be rendered to an image."""


class UnsupportedMimeTypeError(RenderError):
    """Raised when a document's MIME type has no rendering path."""

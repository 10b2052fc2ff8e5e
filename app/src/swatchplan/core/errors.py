from __future__ import annotations


class RenderError(Exception):
    """Failure at the compositing boundary; the message is shown to the user as-is."""

    code = "RENDER_FAILED"


class MissingImagesError(RenderError):
    code = "MISSING_IMAGES"


class RenderInProgressError(RenderError):
    code = "RENDER_IN_PROGRESS"


class NoImageReturnedError(RenderError):
    code = "NO_IMAGE"


class CredentialResetRequired(RenderError):
    """The upstream service no longer recognises the selected credentials."""

    code = "KEY_RESET_REQUIRED"

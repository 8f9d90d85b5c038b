"""Exceptions raised by the captcha rendering pipeline."""

from __future__ import annotations


class CaptchaRenderError(ValueError):
    def __init__(self, message: str, *, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class InvalidInputError(CaptchaRenderError):
    """Rejected before any drawing: bad digits, canvas size, options or draw bounds."""


class GeometryInfeasibleError(InvalidInputError):
    """The digit block cannot be laid out inside the requested canvas."""


class CodecError(CaptchaRenderError):
    pass

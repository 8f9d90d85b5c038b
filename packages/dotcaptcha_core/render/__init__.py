"""Deterministic dot-matrix captcha rendering."""

from .codec import encode_png
from .errors import CaptchaRenderError, CodecError, GeometryInfeasibleError, InvalidInputError
from .layout import Layout, calculate_layout
from .pipeline import (
    DEFAULT_CANVAS_WARP,
    DEFAULT_DISTORTION_OPTS,
    DEFAULT_STRIKE_WARP,
    STD_HEIGHT,
    STD_WIDTH,
    CaptchaImage,
    DistortionOpts,
    WarpBounds,
    render,
)
from .stream import RandomStream, SipStream, derive_seed

__all__ = [
    "encode_png",
    "CaptchaRenderError",
    "CodecError",
    "GeometryInfeasibleError",
    "InvalidInputError",
    "Layout",
    "calculate_layout",
    "DEFAULT_CANVAS_WARP",
    "DEFAULT_DISTORTION_OPTS",
    "DEFAULT_STRIKE_WARP",
    "STD_HEIGHT",
    "STD_WIDTH",
    "CaptchaImage",
    "DistortionOpts",
    "WarpBounds",
    "render",
    "RandomStream",
    "SipStream",
    "derive_seed",
]

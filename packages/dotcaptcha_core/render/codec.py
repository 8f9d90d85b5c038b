"""PNG encoding of a finished render through Pillow."""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING

from PIL import Image

from .errors import CodecError
from .palette import flatten_rgba

if TYPE_CHECKING:
    from .pipeline import CaptchaImage


def to_pil_image(image: "CaptchaImage") -> Image.Image:
    raster = image.raster
    pil = Image.frombytes("P", (raster.width, raster.height), raster.tobytes())
    # RGBA palette so the PNG writer emits tRNS and index 0 stays transparent.
    pil.putpalette(flatten_rgba(image.palette), rawmode="RGBA")
    return pil


def encode_png(image: "CaptchaImage", *, compress_level: int = 1) -> bytes:
    buf = BytesIO()
    try:
        to_pil_image(image).save(buf, format="PNG", compress_level=compress_level)
    except (OSError, ValueError) as exc:
        raise CodecError(f"PNG encoding failed: {exc}", error_code="codec_failure") from exc
    return buf.getvalue()

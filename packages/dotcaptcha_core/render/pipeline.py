"""Captcha image rendering: seed, palette, layout, digits, noise, warp."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence
import logging

from .codec import encode_png
from .digits import draw_digit
from .distort import distort
from .errors import GeometryInfeasibleError, InvalidInputError
from .font import glyph_for
from .layout import Layout, calculate_layout
from .noise import fill_with_circles, strike_through
from .palette import Palette, build_palette
from .raster import Raster
from .stream import IMAGE_SEED_PURPOSE, RandomStream, SipStream, default_seed_key, derive_seed

logger = logging.getLogger("dotcaptcha_core.render.pipeline")

STD_WIDTH = 240
STD_HEIGHT = 80

DEFAULT_MAX_SKEW = 0.7
DEFAULT_CIRCLE_COUNT = 20
DEFAULT_STRIKE_COUNT = 1
MAX_PALETTE_SIZE = 256


@dataclass(frozen=True)
class WarpBounds:
    amp_min: float
    amp_max: float
    period_min: float
    period_max: float

    def validate(self, name: str) -> None:
        if self.amp_min < 0 or self.amp_min > self.amp_max:
            raise InvalidInputError(
                f"{name}: amplitude range [{self.amp_min}, {self.amp_max}] is invalid",
                error_code="invalid_options",
            )
        if self.period_min <= 0 or self.period_min > self.period_max:
            raise InvalidInputError(
                f"{name}: period range [{self.period_min}, {self.period_max}] is invalid",
                error_code="invalid_options",
            )


DEFAULT_CANVAS_WARP = WarpBounds(amp_min=5, amp_max=10, period_min=100, period_max=200)
DEFAULT_STRIKE_WARP = WarpBounds(amp_min=5, amp_max=20, period_min=80, period_max=180)


@dataclass(frozen=True)
class DistortionOpts:
    """Noise and warp settings for one render.

    ``circle_count`` also sizes the palette (one entry per circle colour plus
    transparent), so it must be between 2 and 255.
    """

    circle_count: int = DEFAULT_CIRCLE_COUNT
    strike_count: int = DEFAULT_STRIKE_COUNT
    max_skew: float = DEFAULT_MAX_SKEW
    canvas_warp: WarpBounds = DEFAULT_CANVAS_WARP
    strike_warp: WarpBounds = DEFAULT_STRIKE_WARP

    def validate(self) -> None:
        if not 2 <= self.circle_count < MAX_PALETTE_SIZE:
            raise InvalidInputError(
                f"circle_count must be between 2 and {MAX_PALETTE_SIZE - 1}, got {self.circle_count}",
                error_code="invalid_options",
            )
        if self.strike_count < 0:
            raise InvalidInputError("strike_count must be >= 0", error_code="invalid_options")
        if self.max_skew < 0:
            raise InvalidInputError("max_skew must be >= 0", error_code="invalid_options")
        self.canvas_warp.validate("canvas_warp")
        self.strike_warp.validate("strike_warp")


DEFAULT_DISTORTION_OPTS = DistortionOpts()


@dataclass
class CaptchaImage:
    """Finished render: the paletted raster plus what produced it."""

    raster: Raster
    palette: Palette
    layout: Layout
    anchor: tuple[int, int]
    seed: Optional[bytes] = field(default=None, repr=False)

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height

    def encode_png(self, *, compress_level: int = 1) -> bytes:
        return encode_png(self, compress_level=compress_level)


def _validate_inputs(digits: Sequence[int], width: int, height: int, opts: DistortionOpts) -> list[int]:
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Canvas size must be positive, got {width}x{height}", error_code="invalid_canvas")
    values = [int(d) for d in digits]
    if not values:
        raise InvalidInputError("Digit sequence is empty", error_code="empty_digits")
    for d in values:
        if not 0 <= d <= 9:
            raise InvalidInputError(f"Digit out of range 0-9: {d}", error_code="invalid_digit")
    opts.validate()
    return values


def render(
    identifier: str,
    digits: Sequence[int],
    width: int = STD_WIDTH,
    height: int = STD_HEIGHT,
    opts: Optional[DistortionOpts] = None,
    *,
    key: Optional[bytes] = None,
    stream: Optional[RandomStream] = None,
) -> CaptchaImage:
    """Render the challenge image for ``identifier`` and ``digits``.

    The same inputs and key always give the same pixels. Passing ``stream``
    replaces the seeded generator, which is only useful in tests.
    """
    if opts is None:
        opts = DEFAULT_DISTORTION_OPTS
    values = _validate_inputs(digits, width, height, opts)

    seed: Optional[bytes] = None
    if stream is None:
        seed = derive_seed(IMAGE_SEED_PURPOSE, identifier, values, key or default_seed_key())
        stream = SipStream(seed)

    layout = calculate_layout(width, height, len(values))
    if not layout.fits:
        raise GeometryInfeasibleError(
            f"No room to place {len(values)} digits in a {width}x{height} canvas",
            error_code="geometry_infeasible",
        )
    (x_lo, x_hi), (y_lo, y_hi) = layout.anchor_range()

    palette = build_palette(stream, opts.circle_count)
    raster = Raster(width, height)
    x = stream.int_in(x_lo, x_hi)
    y = stream.int_in(y_lo, y_hi)
    anchor = (x, y)

    dot = layout.dot_size
    for d in values:
        draw_digit(raster, glyph_for(d), x, y, opts.max_skew, stream, dot)
        x += layout.num_width + dot

    sw = opts.strike_warp
    for _ in range(opts.strike_count):
        strike_through(raster, stream, dot, sw.amp_min, sw.amp_max, sw.period_min, sw.period_max)

    cw = opts.canvas_warp
    amplitude = stream.float_in(cw.amp_min, cw.amp_max)
    period = stream.float_in(cw.period_min, cw.period_max)
    raster = distort(raster, amplitude, period)

    fill_with_circles(raster, stream, opts.circle_count, dot)

    logger.debug(
        "[RENDER] id=%s digits=%d canvas=%dx%d anchor=%s dot=%d",
        identifier, len(values), width, height, anchor, dot,
    )
    return CaptchaImage(raster=raster, palette=palette, layout=layout, anchor=anchor, seed=seed)

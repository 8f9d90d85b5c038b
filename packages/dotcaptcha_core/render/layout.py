"""Digit cell sizing for a canvas of a given size."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .errors import GeometryInfeasibleError
from .font import FONT_HEIGHT, FONT_WIDTH

logger = logging.getLogger("dotcaptcha_core.render.layout")


@dataclass(frozen=True)
class Layout:
    """Cell geometry shared by every digit of one render.

    ``num_width`` is the glyph advance without the one-dot gap, ``dot_size`` the
    base disc size used for glyph dots and noise.
    """

    width: int
    height: int
    digit_count: int
    num_width: int
    num_height: int
    dot_size: int
    height_bound: bool

    @property
    def block_width(self) -> int:
        return (self.num_width + self.dot_size) * self.digit_count + self.dot_size

    @property
    def block_height(self) -> int:
        return self.num_height + self.dot_size * 2

    @property
    def anchor_border(self) -> int:
        return self.height // 6 if self.width > self.height else self.width // 6

    @property
    def fits(self) -> bool:
        return self.block_width <= self.width and self.block_height <= self.height

    def anchor_range(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Inclusive ``(x_lo, x_hi), (y_lo, y_hi)`` for the block's top-left corner.

        On an axis with less than two borders of slack the border shrinks to
        half the slack, so a block that fits always has a place to go.
        """
        border = self.anchor_border
        max_x = self.width - self.block_width
        max_y = self.height - self.block_height
        bx = min(border, max_x // 2)
        by = min(border, max_y // 2)
        return (bx, max_x - bx), (by, max_y - by)


def layout_border(width: int, height: int) -> int:
    return height // 5 if width > height else width // 5


def calculate_layout(
    width: int,
    height: int,
    digit_count: int,
    font_width: int = FONT_WIDTH,
    font_height: int = FONT_HEIGHT,
) -> Layout:
    border = layout_border(width, height)
    w = float(width - border * 2)
    h = float(height - border * 2)
    # One dot of spacing between digits.
    fw = float(font_width + 1)
    fh = float(font_height)

    nw = w / float(digit_count)
    nh = nw * fh / fw
    height_bound = nh > h
    if height_bound:
        nh = h
        nw = fw / fh * nh

    if int(nw) < 1 or int(nh) < 1:
        raise GeometryInfeasibleError(
            f"{digit_count} digits do not fit in a {width}x{height} canvas",
            error_code="geometry_infeasible",
        )

    dot_size = max(1, int(nh / fh))
    layout = Layout(
        width=width,
        height=height,
        digit_count=digit_count,
        num_width=int(nw) - dot_size,
        num_height=int(nh),
        dot_size=dot_size,
        height_bound=height_bound,
    )
    logger.debug(
        "[LAYOUT] canvas=%dx%d digits=%d num=%dx%d dot=%d height_bound=%s",
        width, height, digit_count, layout.num_width, layout.num_height, dot_size, height_bound,
    )
    return layout

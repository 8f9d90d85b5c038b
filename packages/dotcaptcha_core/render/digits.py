"""Stamping a glyph as a sheared grid of discs."""

from __future__ import annotations

from .font import FONT_HEIGHT, FONT_WIDTH, Glyph
from .palette import PRIMARY_INDEX
from .raster import Raster, draw_circle
from .stream import RandomStream


def draw_digit(
    raster: Raster,
    glyph: Glyph,
    x: int,
    y: int,
    max_skew: float,
    stream: RandomStream,
    dot_size: int,
) -> None:
    skew = stream.float_in(-max_skew, max_skew)
    xs = float(x)
    r = dot_size // 2
    y += stream.int_in(-r, r)
    for yo in range(FONT_HEIGHT):
        row = glyph[yo]
        for xo in range(FONT_WIDTH):
            if row[xo]:
                draw_circle(raster, x + xo * dot_size, y + yo * dot_size, r, PRIMARY_INDEX)
        # Shear accumulates in float; each row truncates the running total.
        xs += skew
        x = int(xs)

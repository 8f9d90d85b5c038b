"""Paletted pixel grid and the filled-disc primitive."""

from __future__ import annotations


class Raster:
    """Row-major grid of palette indices; out-of-bounds writes are dropped."""

    __slots__ = ("width", "height", "pix")

    def __init__(self, width: int, height: int, pix: bytearray | None = None) -> None:
        self.width = width
        self.height = height
        if pix is None:
            pix = bytearray(width * height)
        elif len(pix) != width * height:
            raise ValueError(f"Pixel buffer has {len(pix)} cells, expected {width * height}")
        self.pix = pix

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index_at(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            return 0
        return self.pix[y * self.width + x]

    def set_index(self, x: int, y: int, color_idx: int) -> None:
        if self.in_bounds(x, y):
            self.pix[y * self.width + x] = color_idx

    def tobytes(self) -> bytes:
        return bytes(self.pix)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return (self.width, self.height, self.pix) == (other.width, other.height, other.pix)

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height})"


def draw_horiz_line(raster: Raster, from_x: int, to_x: int, y: int, color_idx: int) -> None:
    if y < 0 or y >= raster.height:
        return
    lo = max(from_x, 0)
    hi = min(to_x, raster.width - 1)
    if lo > hi:
        return
    row = y * raster.width
    raster.pix[row + lo : row + hi + 1] = bytes((color_idx,)) * (hi - lo + 1)


def draw_circle(raster: Raster, x: int, y: int, radius: int, color_idx: int) -> None:
    """Midpoint circle walk, filling spans between mirrored offsets."""
    f = 1 - radius
    dfx = 1
    dfy = -2 * radius
    xo = 0
    yo = radius

    raster.set_index(x, y + radius, color_idx)
    raster.set_index(x, y - radius, color_idx)
    draw_horiz_line(raster, x - radius, x + radius, y, color_idx)

    while xo < yo:
        if f >= 0:
            yo -= 1
            dfy += 2
            f += dfy
        xo += 1
        dfx += 2
        f += dfx
        draw_horiz_line(raster, x - xo, x + xo, y + yo, color_idx)
        draw_horiz_line(raster, x - xo, x + xo, y - yo, color_idx)
        draw_horiz_line(raster, x - yo, x + yo, y + xo, color_idx)
        draw_horiz_line(raster, x - yo, x + yo, y - xo, color_idx)

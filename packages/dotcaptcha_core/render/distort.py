"""Global sinusoidal warp of the whole canvas."""

from __future__ import annotations

import math

from .raster import Raster


def distort(source: Raster, amplitude: float, period: float) -> Raster:
    """Return a new raster sampling ``source`` through a sine displacement field.

    Samples that land outside ``source`` read as index 0. ``source`` is never
    written.
    """
    w = source.width
    h = source.height
    src = source.pix
    out = bytearray(w * h)
    dx = 2.0 * math.pi / period
    # Offsets are separable: the x shift depends on the row, the y shift on the column.
    x_shift = [int(amplitude * math.sin(float(y) * dx)) for y in range(h)]
    y_shift = [int(amplitude * math.cos(float(x) * dx)) for x in range(w)]
    for y in range(h):
        row = y * w
        xs = x_shift[y]
        for x in range(w):
            sx = x + xs
            sy = y + y_shift[x]
            if 0 <= sx < w and 0 <= sy < h:
                out[row + x] = src[sy * w + sx]
    return Raster(w, h, out)

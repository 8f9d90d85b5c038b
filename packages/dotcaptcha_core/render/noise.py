"""Strike-through wobble line and background occluding circles."""

from __future__ import annotations

import math

from .palette import PRIMARY_INDEX
from .raster import Raster, draw_circle
from .stream import RandomStream


def strike_through(
    raster: Raster,
    stream: RandomStream,
    dot_size: int,
    amp_min: float,
    amp_max: float,
    period_min: float,
    period_max: float,
) -> None:
    max_x = raster.width
    max_y = raster.height
    y = stream.int_in(max_y // 3, max_y - max_y // 3)
    amplitude = stream.float_in(amp_min, amp_max)
    period = stream.float_in(period_min, period_max)
    dx = 2.0 * math.pi / period
    # The horizontal offset depends only on the line's own y, so it is fixed
    # for the whole pass.
    xo = int(amplitude * math.cos(float(y) * dx))
    for x in range(max_x):
        yo = int(amplitude * math.sin(float(x) * dx))
        stacked = stream.int_in(0, 2 * dot_size // 3)
        for yn in range(stacked):
            r = stream.int_in(0, dot_size)
            draw_circle(raster, x + xo, y + yo + yn * dot_size, r // 2, PRIMARY_INDEX)


def fill_with_circles(raster: Raster, stream: RandomStream, count: int, max_radius: int) -> None:
    max_x = raster.width
    max_y = raster.height
    for _ in range(count):
        color_idx = stream.int_in(1, count - 1)
        r = stream.int_in(1, max_radius)
        # Keep the whole disc on canvas: cx + r <= max_x - 1.
        cx = stream.int_in(r, max_x - 1 - r)
        cy = stream.int_in(r, max_y - 1 - r)
        draw_circle(raster, cx, cy, r, color_idx)

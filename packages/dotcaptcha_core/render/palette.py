"""Indexed palette: transparent background, a dark primary and its shades."""

from __future__ import annotations

from typing import Tuple

from .stream import RandomStream

RGBA = Tuple[int, int, int, int]
Palette = Tuple[RGBA, ...]

TRANSPARENT: RGBA = (0xFF, 0xFF, 0xFF, 0x00)
PRIMARY_CHANNEL_MAX = 128
BRIGHTNESS_CEILING = 255

TRANSPARENT_INDEX = 0
PRIMARY_INDEX = 1


def random_brightness(stream: RandomStream, color: RGBA, ceiling: int = BRIGHTNESS_CEILING) -> RGBA:
    """Shift all three channels by one shared delta so the hue is kept.

    Channels wrap modulo 256 like unsigned bytes; they are not clamped.
    """
    r, g, b, a = color
    min_c = min(r, g, b)
    max_c = max(r, g, b)
    if max_c > ceiling:
        return color
    delta = stream.int_below(ceiling - max_c) - min_c
    return ((r + delta) & 0xFF, (g + delta) & 0xFF, (b + delta) & 0xFF, a)


def build_palette(stream: RandomStream, circle_count: int) -> Palette:
    primary: RGBA = (
        stream.int_below(PRIMARY_CHANNEL_MAX + 1),
        stream.int_below(PRIMARY_CHANNEL_MAX + 1),
        stream.int_below(PRIMARY_CHANNEL_MAX + 1),
        0xFF,
    )
    colors: list[RGBA] = [TRANSPARENT, primary]
    for _ in range(2, circle_count + 1):
        colors.append(random_brightness(stream, primary))
    return tuple(colors)


def flatten_rgba(palette: Palette) -> bytes:
    return bytes(channel for color in palette for channel in color)

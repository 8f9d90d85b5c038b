"""Fixed dot-matrix glyphs for the digits 0-9.

Each glyph is ``FONT_HEIGHT`` rows of ``FONT_WIDTH`` cells; ``#`` marks a dot.
The table is built once at import and never mutated.
"""

from __future__ import annotations

from typing import Tuple

FONT_WIDTH = 11
FONT_HEIGHT = 18

Glyph = Tuple[Tuple[bool, ...], ...]

_GLYPH_ROWS: tuple[tuple[str, ...], ...] = (
    (
        "           ",
        "   #####   ",
        "  #######  ",
        " ###   ### ",
        " ##     ## ",
        " ##     ## ",
        " ##    ### ",
        " ##   #### ",
        " ##  ## ## ",
        " ## ##  ## ",
        " ####   ## ",
        " ###    ## ",
        " ##     ## ",
        " ##     ## ",
        " ###   ### ",
        "  #######  ",
        "   #####   ",
        "           ",
    ),
    (
        "           ",
        "     ##    ",
        "    ###    ",
        "   ####    ",
        "  ## ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "     ##    ",
        "  ######## ",
        "  ######## ",
        "           ",
    ),
    (
        "           ",
        "   #####   ",
        "  #######  ",
        " ###   ### ",
        " ##     ## ",
        "        ## ",
        "        ## ",
        "       ### ",
        "      ###  ",
        "     ###   ",
        "    ###    ",
        "   ###     ",
        "  ###      ",
        " ###       ",
        " ##        ",
        " ######### ",
        " ######### ",
        "           ",
    ),
    (
        "           ",
        "  ######   ",
        " ########  ",
        "       ### ",
        "        ## ",
        "        ## ",
        "       ### ",
        "   ######  ",
        "   ######  ",
        "       ### ",
        "        ## ",
        "        ## ",
        "        ## ",
        "        ## ",
        "       ### ",
        " ########  ",
        "  ######   ",
        "           ",
    ),
    (
        "           ",
        "       ##  ",
        "      ###  ",
        "     ####  ",
        "    ## ##  ",
        "   ##  ##  ",
        "  ##   ##  ",
        " ##    ##  ",
        " ##    ##  ",
        " ######### ",
        " ######### ",
        "       ##  ",
        "       ##  ",
        "       ##  ",
        "       ##  ",
        "       ##  ",
        "       ##  ",
        "           ",
    ),
    (
        "           ",
        " ######### ",
        " ######### ",
        " ##        ",
        " ##        ",
        " ##        ",
        " #######   ",
        " ########  ",
        "       ### ",
        "        ## ",
        "        ## ",
        "        ## ",
        "        ## ",
        " ##     ## ",
        " ###   ### ",
        "  #######  ",
        "   #####   ",
        "           ",
    ),
    (
        "           ",
        "    ####   ",
        "   ######  ",
        "  ###      ",
        " ###       ",
        " ##        ",
        " ##        ",
        " ## ####   ",
        " ########  ",
        " ###   ### ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ###   ### ",
        "  #######  ",
        "   #####   ",
        "           ",
    ),
    (
        "           ",
        " ######### ",
        " ######### ",
        "        ## ",
        "       ### ",
        "       ##  ",
        "      ###  ",
        "      ##   ",
        "     ###   ",
        "     ##    ",
        "    ###    ",
        "    ##     ",
        "    ##     ",
        "   ###     ",
        "   ##      ",
        "   ##      ",
        "   ##      ",
        "           ",
    ),
    (
        "           ",
        "   #####   ",
        "  #######  ",
        " ###   ### ",
        " ##     ## ",
        " ##     ## ",
        " ###   ### ",
        "  #######  ",
        "  #######  ",
        " ###   ### ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ###   ### ",
        "  #######  ",
        "   #####   ",
        "           ",
    ),
    (
        "           ",
        "   #####   ",
        "  #######  ",
        " ###   ### ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ##     ## ",
        " ###   ### ",
        "  ######## ",
        "   #### ## ",
        "        ## ",
        "        ## ",
        "       ### ",
        "      ###  ",
        "  ######   ",
        "  #####    ",
        "           ",
    ),
)


def _parse_glyph(rows: tuple[str, ...]) -> Glyph:
    return tuple(tuple(ch == "#" for ch in row) for row in rows)


FONT: tuple[Glyph, ...] = tuple(_parse_glyph(rows) for rows in _GLYPH_ROWS)


def glyph_for(digit: int) -> Glyph:
    return FONT[digit]

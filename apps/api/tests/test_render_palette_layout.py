#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.dotcaptcha_core.render.errors import GeometryInfeasibleError
from packages.dotcaptcha_core.render.font import FONT, FONT_HEIGHT, FONT_WIDTH
from packages.dotcaptcha_core.render.layout import calculate_layout, layout_border
from packages.dotcaptcha_core.render.palette import (
    TRANSPARENT,
    build_palette,
    random_brightness,
)
from packages.dotcaptcha_core.render.stream import IMAGE_SEED_PURPOSE, SipStream, derive_seed

from apps.api.tests.render_stubs import FixedStream

KEY = b"palette-layout-test-key-32bytes!"


class PaletteTests(unittest.TestCase):
    def test_structure_and_shared_delta(self) -> None:
        for ident in ("abc123", "zz", "palette-3"):
            stream = SipStream(derive_seed(IMAGE_SEED_PURPOSE, ident, [4, 2], KEY))
            palette = build_palette(stream, 20)
            self.assertEqual(len(palette), 21)
            self.assertEqual(palette[0], TRANSPARENT)
            self.assertEqual(palette[0][3], 0)
            primary = palette[1]
            self.assertTrue(all(0 <= c <= 128 for c in primary[:3]))
            self.assertEqual(primary[3], 0xFF)
            for variant in palette[2:]:
                deltas = {(variant[i] - primary[i]) % 256 for i in range(3)}
                self.assertEqual(len(deltas), 1, msg=f"{variant} vs {primary}")
                self.assertEqual(variant[3], 0xFF)

    def test_brightness_delta_formula(self) -> None:
        # delta = int_below(255 - max) - min = 30 - 10
        stream = FixedStream(ints=[30])
        self.assertEqual(random_brightness(stream, (10, 50, 100, 255)), (30, 70, 120, 255))
        self.assertEqual(stream.calls, [("int_below", 0, 155)])

    def test_brightness_darkens_towards_zero(self) -> None:
        stream = FixedStream(ints=[0])
        self.assertEqual(random_brightness(stream, (10, 50, 100, 255)), (0, 40, 90, 255))

    def test_color_above_ceiling_is_unchanged(self) -> None:
        stream = FixedStream()
        self.assertEqual(random_brightness(stream, (10, 200, 20, 255), ceiling=128), (10, 200, 20, 255))
        self.assertEqual(stream.calls, [])

    def test_primary_draw_order(self) -> None:
        stream = FixedStream(ints=[1, 2, 3])
        palette = build_palette(stream, 2)
        self.assertEqual(palette[1], (1, 2, 3, 255))
        self.assertEqual(len(palette), 3)


class FontTests(unittest.TestCase):
    def test_every_digit_has_full_size_glyph(self) -> None:
        self.assertEqual(len(FONT), 10)
        for glyph in FONT:
            self.assertEqual(len(glyph), FONT_HEIGHT)
            self.assertTrue(all(len(row) == FONT_WIDTH for row in glyph))
            self.assertTrue(any(any(row) for row in glyph))

    def test_glyphs_are_distinct(self) -> None:
        self.assertEqual(len(set(FONT)), 10)


class LayoutTests(unittest.TestCase):
    def test_border_uses_constraining_dimension(self) -> None:
        self.assertEqual(layout_border(240, 80), 16)
        self.assertEqual(layout_border(80, 240), 16)
        self.assertEqual(layout_border(100, 100), 20)

    def test_standard_canvas_three_digits(self) -> None:
        layout = calculate_layout(240, 80, 3)
        self.assertTrue(layout.height_bound)
        self.assertEqual(layout.dot_size, 2)
        self.assertEqual(layout.num_width, 30)
        self.assertEqual(layout.num_height, 48)
        self.assertEqual(layout.anchor_range(), ((13, 129), (13, 15)))

    def test_width_bound_layout(self) -> None:
        layout = calculate_layout(240, 80, 10)
        self.assertFalse(layout.height_bound)
        self.assertEqual(layout.dot_size, 1)
        self.assertEqual(layout.num_width, 19)
        self.assertEqual(layout.num_height, 31)

    def test_height_fallback_triggers_exactly_when_cell_too_tall(self) -> None:
        # Usable height at 240x80 is 48; natural height is (208/n) * 18/12.
        expected = {n: (208.0 / n) * 18.0 / 12.0 > 48.0 for n in range(1, 21)}
        for n, height_bound in expected.items():
            self.assertEqual(calculate_layout(240, 80, n).height_bound, height_bound, msg=f"n={n}")
        self.assertTrue(expected[6])
        self.assertFalse(expected[7])

    def test_digit_block_fits_for_supported_sizes(self) -> None:
        for width in range(50, 131):
            for height in range(50, 131):
                for n in range(1, 21):
                    layout = calculate_layout(width, height, n)
                    msg = f"{width}x{height} n={n}"
                    self.assertGreaterEqual(layout.dot_size, 1, msg=msg)
                    self.assertTrue(layout.fits, msg=msg)
                    (x_lo, x_hi), (y_lo, y_hi) = layout.anchor_range()
                    self.assertGreaterEqual(x_lo, 0, msg=msg)
                    self.assertGreaterEqual(y_lo, 0, msg=msg)
                    self.assertLessEqual(x_lo, x_hi, msg=msg)
                    self.assertLessEqual(y_lo, y_hi, msg=msg)
                    self.assertLessEqual(x_hi + layout.block_width, width, msg=msg)
                    self.assertLessEqual(y_hi + layout.block_height, height, msg=msg)

    def test_tight_axis_shrinks_anchor_border(self) -> None:
        # 59x77 with one digit leaves 16 rows of slack against a border of 9.
        layout = calculate_layout(59, 77, 1)
        self.assertEqual(layout.dot_size, 3)
        self.assertEqual(layout.block_height, 61)
        self.assertEqual(layout.anchor_border, 9)
        self.assertEqual(layout.anchor_range(), ((9, 11), (8, 8)))

    def test_collapsed_cells_are_rejected(self) -> None:
        with self.assertRaises(GeometryInfeasibleError):
            calculate_layout(10, 10, 20)


if __name__ == "__main__":
    unittest.main()

#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.dotcaptcha_core.render.errors import InvalidInputError
from packages.dotcaptcha_core.render.stream import (
    IMAGE_SEED_PURPOSE,
    SipStream,
    derive_seed,
    parse_seed_key,
    siphash64,
)

KEY = bytes(range(32))


class SipHashTests(unittest.TestCase):
    def test_reference_vector_for_eight_byte_message(self) -> None:
        # Reference SipHash-2-4 output for key 00..0f and message 00..07.
        k0 = int.from_bytes(bytes(range(0, 8)), "little")
        k1 = int.from_bytes(bytes(range(8, 16)), "little")
        m = int.from_bytes(bytes(range(8)), "little")
        self.assertEqual(siphash64(k0, k1, m), 0x93F5F5799A932462)


class SipStreamTests(unittest.TestCase):
    def test_same_seed_same_sequence(self) -> None:
        seed = derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 3], KEY)
        a = SipStream(seed)
        b = SipStream(seed)
        self.assertEqual([a.uint64() for _ in range(32)], [b.uint64() for _ in range(32)])

    def test_int_in_stays_within_inclusive_bounds(self) -> None:
        stream = SipStream(derive_seed(IMAGE_SEED_PURPOSE, "bounds", [0], KEY))
        values = [stream.int_in(-3, 3) for _ in range(500)]
        self.assertTrue(all(-3 <= v <= 3 for v in values))
        self.assertEqual(set(values), set(range(-3, 4)))
        self.assertEqual(stream.int_in(7, 7), 7)

    def test_int_below_handles_power_of_two_and_large_bounds(self) -> None:
        stream = SipStream(derive_seed(IMAGE_SEED_PURPOSE, "pow2", [4], KEY))
        self.assertTrue(all(0 <= stream.int_below(64) < 64 for _ in range(200)))
        big = 1 << 40
        self.assertTrue(all(0 <= stream.int_below(big + 3) < big + 3 for _ in range(50)))

    def test_float_in_range(self) -> None:
        stream = SipStream(derive_seed(IMAGE_SEED_PURPOSE, "float", [9], KEY))
        values = [stream.float_in(5.0, 10.0) for _ in range(200)]
        self.assertTrue(all(5.0 <= v < 10.0 for v in values))
        self.assertEqual(stream.float_in(2.5, 2.5), 2.5)

    def test_bound_violations_are_rejected(self) -> None:
        stream = SipStream(derive_seed(IMAGE_SEED_PURPOSE, "bad", [1], KEY))
        with self.assertRaises(InvalidInputError):
            stream.int_below(0)
        with self.assertRaises(InvalidInputError):
            stream.int_in(3, 2)
        with self.assertRaises(InvalidInputError):
            stream.float_in(1.0, 0.5)

    def test_seed_must_be_sixteen_bytes(self) -> None:
        with self.assertRaises(InvalidInputError):
            SipStream(b"short")


class DeriveSeedTests(unittest.TestCase):
    def test_seed_is_stable_and_sixteen_bytes(self) -> None:
        first = derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 3], KEY)
        second = derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 3], KEY)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 16)

    def test_every_input_changes_the_seed(self) -> None:
        base = derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 3], KEY)
        self.assertNotEqual(base, derive_seed(0x02, "abc123", [1, 2, 3], KEY))
        self.assertNotEqual(base, derive_seed(IMAGE_SEED_PURPOSE, "abc124", [1, 2, 3], KEY))
        self.assertNotEqual(base, derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 4], KEY))
        self.assertNotEqual(base, derive_seed(IMAGE_SEED_PURPOSE, "abc123", [1, 2, 3], bytes(32)))

    def test_id_and_digits_are_separated(self) -> None:
        # "a" + [1] and "a\x01" + [] must not collide.
        self.assertNotEqual(
            derive_seed(IMAGE_SEED_PURPOSE, "a", [1], KEY),
            derive_seed(IMAGE_SEED_PURPOSE, "a\x01", [], KEY),
        )

    def test_parse_seed_key(self) -> None:
        self.assertEqual(parse_seed_key("00" * 16), bytes(16))
        with self.assertRaises(InvalidInputError):
            parse_seed_key("zz")
        with self.assertRaises(InvalidInputError):
            parse_seed_key("00" * 8)


if __name__ == "__main__":
    unittest.main()

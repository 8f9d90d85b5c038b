"""Keyed deterministic random stream used by a single captcha render.

Seeds come from HMAC-SHA256 over a purpose tag, the challenge id and its
digits. Draws come from SipHash-2-4 evaluated over an incrementing counter, so
a given seed always yields the same sequence on every platform.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Sequence
import hashlib
import hmac
import os
import secrets
import struct

from .errors import InvalidInputError

IMAGE_SEED_PURPOSE = 0x01
SEED_SIZE = 16

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MAX_INT63 = (1 << 63) - 1
_MAX_INT31 = (1 << 31) - 1


class RandomStream(ABC):
    """Bounded draws consumed by the drawing steps, in a fixed order."""

    @abstractmethod
    def int_below(self, n: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def int_in(self, lo: int, hi: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def float_in(self, lo: float, hi: float) -> float:
        raise NotImplementedError


def _rotl(x: int, b: int) -> int:
    return ((x << b) | (x >> (64 - b))) & _MASK64


def _sipround(v0: int, v1: int, v2: int, v3: int) -> tuple[int, int, int, int]:
    v0 = (v0 + v1) & _MASK64
    v1 = _rotl(v1, 13) ^ v0
    v0 = _rotl(v0, 32)
    v2 = (v2 + v3) & _MASK64
    v3 = _rotl(v3, 16) ^ v2
    v0 = (v0 + v3) & _MASK64
    v3 = _rotl(v3, 21) ^ v0
    v2 = (v2 + v1) & _MASK64
    v1 = _rotl(v1, 17) ^ v2
    v2 = _rotl(v2, 32)
    return v0, v1, v2, v3


def siphash64(k0: int, k1: int, m: int) -> int:
    """SipHash-2-4 of a single 8-byte little-endian message word."""
    v0 = k0 ^ 0x736F6D6570736575
    v1 = k1 ^ 0x646F72616E646F6D
    v2 = k0 ^ 0x6C7967656E657261
    v3 = k1 ^ 0x7465646279746573

    v3 ^= m
    v0, v1, v2, v3 = _sipround(v0, v1, v2, v3)
    v0, v1, v2, v3 = _sipround(v0, v1, v2, v3)
    v0 ^= m

    # Final block holds only the message length (8) in its top byte.
    t = 8 << 56
    v3 ^= t
    v0, v1, v2, v3 = _sipround(v0, v1, v2, v3)
    v0, v1, v2, v3 = _sipround(v0, v1, v2, v3)
    v0 ^= t

    v2 ^= 0xFF
    for _ in range(4):
        v0, v1, v2, v3 = _sipround(v0, v1, v2, v3)
    return v0 ^ v1 ^ v2 ^ v3


class SipStream(RandomStream):
    def __init__(self, seed: bytes) -> None:
        if len(seed) != SEED_SIZE:
            raise InvalidInputError(
                f"Seed must be {SEED_SIZE} bytes, got {len(seed)}",
                error_code="invalid_seed",
            )
        self._k0, self._k1 = struct.unpack("<QQ", seed)
        self._ctr = 1

    def uint64(self) -> int:
        value = siphash64(self._k0, self._k1, self._ctr)
        self._ctr = (self._ctr + 1) & _MASK64
        return value

    def int63(self) -> int:
        return self.uint64() & _MAX_INT63

    def int31(self) -> int:
        return self.uint64() & _MAX_INT31

    def _int31n(self, n: int) -> int:
        if n & (n - 1) == 0:
            return self.int31() & (n - 1)
        limit = _MAX_INT31 - (1 << 31) % n
        v = self.int31()
        while v > limit:
            v = self.int31()
        return v % n

    def _int63n(self, n: int) -> int:
        if n & (n - 1) == 0:
            return self.int63() & (n - 1)
        limit = _MAX_INT63 - (1 << 63) % n
        v = self.int63()
        while v > limit:
            v = self.int63()
        return v % n

    def int_below(self, n: int) -> int:
        if n <= 0:
            raise InvalidInputError(f"int_below requires n > 0, got {n}", error_code="invalid_bound")
        if n <= _MAX_INT31:
            return self._int31n(n)
        return self._int63n(n)

    def int_in(self, lo: int, hi: int) -> int:
        if lo > hi:
            raise InvalidInputError(f"int_in requires lo <= hi, got {lo} > {hi}", error_code="invalid_bound")
        return self.int_below(hi + 1 - lo) + lo

    def float01(self) -> float:
        return float(self.int63()) / float(1 << 63)

    def float_in(self, lo: float, hi: float) -> float:
        if lo > hi:
            raise InvalidInputError(f"float_in requires lo <= hi, got {lo} > {hi}", error_code="invalid_bound")
        return (hi - lo) * self.float01() + lo


def derive_seed(purpose: int, identifier: str, digits: Sequence[int], key: bytes) -> bytes:
    mac = hmac.new(key, digestmod=hashlib.sha256)
    mac.update(bytes([purpose & 0xFF]))
    mac.update(identifier.encode("utf-8"))
    mac.update(b"\x00")
    mac.update(bytes(digits))
    return mac.digest()[:SEED_SIZE]


def parse_seed_key(raw: str) -> bytes:
    try:
        key = bytes.fromhex(raw.strip())
    except ValueError as exc:
        raise InvalidInputError("Seed key must be hex encoded", error_code="invalid_seed_key") from exc
    if len(key) < 16:
        raise InvalidInputError("Seed key must be at least 16 bytes", error_code="invalid_seed_key")
    return key


@lru_cache(maxsize=1)
def default_seed_key() -> bytes:
    """Process-wide mixing key: ``DOTCAPTCHA_SEED_KEY`` or a fresh random one."""
    raw = str(os.environ.get("DOTCAPTCHA_SEED_KEY") or "").strip()
    if raw:
        return parse_seed_key(raw)
    return secrets.token_bytes(32)


def reset_seed_key_cache_for_tests() -> None:
    default_seed_key.cache_clear()

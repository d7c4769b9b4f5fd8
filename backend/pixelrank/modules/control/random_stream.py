# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Seeded Pseudo-Random Stream
Mulberry32: a tiny 32-bit bit-mixing generator. Not cryptographic —
its only job is to drive the control-variant tile shuffle so the same
seed always produces the same tile placement, on every platform.

Recurrence (all arithmetic mod 2^32):
    a  = a + 0x6D2B79F5
    t  = a
    t  = (t ^ (t >> 15)) * (t | 1)
    t ^= t + (t ^ (t >> 7)) * (t | 61)
    out = (t ^ (t >> 14)) / 2^32

Python ints are unbounded, so every intermediate is masked back to
32 bits explicitly.
"""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


class PseudoRandomStream:
    """
    Deterministic stream of floats in [0, 1).

    Usage:
        rng = PseudoRandomStream(seed)
        j = int(rng.next() * (i + 1))

    Also iterable: `itertools.islice(PseudoRandomStream(7), 5)`.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        # Negative or oversized seeds wrap the same way `seed >>> 0` does
        self._state = int(seed) & _MASK32

    @property
    def state(self) -> int:
        """Current 32-bit internal state (advanced once per draw)."""
        return self._state

    def next(self) -> float:
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state
        t = ((t ^ (t >> 15)) * (t | 1)) & _MASK32
        t ^= (t + (((t ^ (t >> 7)) * (t | 61)) & _MASK32)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_below(self, bound: int) -> int:
        """Uniform-ish integer in [0, bound) — floor(next() * bound)."""
        return int(self.next() * bound)

    def __iter__(self) -> PseudoRandomStream:
        return self

    def __next__(self) -> float:
        return self.next()

    def __repr__(self) -> str:
        return f"PseudoRandomStream(state=0x{self._state:08x})"

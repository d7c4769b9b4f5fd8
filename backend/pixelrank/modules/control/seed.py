# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Name-Derived Seed
Turns the upload's base name into the 32-bit seed of the control
variant, so re-uploading the same file reproduces the same CTRL image.

Hash: h = int32(31*h + c) over UTF-16 code units, result |h|.
Characters outside the BMP contribute two code units (a surrogate pair),
matching how browsers index strings. abs(-2**31) is 2**31, which still
fits the unsigned 32-bit seed range.
"""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_SIGN_BIT = 0x80000000


def _to_int32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & _SIGN_BIT else value


def utf16_code_units(name: str) -> list[int]:
    """Return the UTF-16 code units of name (surrogate pairs split)."""
    raw = name.encode("utf-16-le", errors="surrogatepass")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]


def seed_from_name(name: str) -> int:
    """
    Stable unsigned 32-bit seed for a name.

    'image' → 100313435, 'a' → 97, '' → 0.
    Never negative.
    """
    h = 0
    for c in utf16_code_units(name):
        h = _to_int32(31 * h + c)
    return abs(h)

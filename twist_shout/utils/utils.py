# (C) 2024 Irreducible Inc.

from typing import TypeVar

T = TypeVar("T")


def bits_mask(n_bits: int) -> int:
    """Returns a mask for the least-significant bits.

    For example, bits_mask(4) returns 0x0f and bits_mask(9) returns 0x01ff.

    :param n_bits: the number of bits which will be 1.
    """
    return (1 << n_bits) - 1


def is_bit_set(x: int, i: int) -> bool:
    return (x >> i) & 1 != 0


def int_to_bits(x: int, n_bits: int) -> list[int]:
    return [(x >> i) & 1 for i in range(n_bits)]


def is_power_of_two(x: int) -> bool:
    return x > 0 and x & (x - 1) == 0


def log2_ceil(x: int) -> int:
    # smallest v with 2ᵛ ≥ x; a single element still needs a (0-variable) hypercube.
    assert x >= 0
    return max(x - 1, 0).bit_length()


def remove_bit(x: int, position: int) -> int:
    # deletes bit `position` from x, shifting the higher bits down by one.
    return x & bits_mask(position) | (x >> position + 1) << position


def pad_to_power_of_two(values: list[T], fill: T) -> list[T]:
    return values + [fill] * ((1 << log2_ceil(len(values))) - len(values))

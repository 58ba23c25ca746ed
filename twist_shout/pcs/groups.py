# (C) 2024 Irreducible Inc.

"""Thin adapter over the BN254 pairing groups of `py_ecc.optimized_bn128`.

Points are kept in py_ecc's projective (x, y, z) form. Scalars are field elements of `Fr`, whose modulus is the group
order, so they are converted to plain integers only at this boundary.
"""

from typing import Sequence, TypeAlias

from py_ecc import optimized_bn128 as bn128

from ..finite_fields.prime_field import Fr

FQ = bn128.FQ

G1Point: TypeAlias = tuple[FQ, FQ, FQ]
G2Point: TypeAlias = tuple

G1: G1Point = bn128.G1
G2: G2Point = bn128.G2
Z1: G1Point = bn128.Z1

G1_BYTES_LEN = 64


def add(p: G1Point, q: G1Point) -> G1Point:
    return bn128.add(p, q)


def neg(p: G1Point) -> G1Point:
    return bn128.neg(p)


def multiply(p, scalar: Fr):
    return bn128.multiply(p, int(scalar))


def msm(points: Sequence[G1Point], scalars: Sequence[Fr]) -> G1Point:
    """Multi-scalar multiplication Σ scalars[i]·points[i], skipping zero scalars."""
    assert len(points) == len(scalars)
    result = Z1
    for point, scalar in zip(points, scalars):
        if scalar.is_zero():
            continue
        if scalar == Fr.one():
            result = bn128.add(result, point)
        else:
            result = bn128.add(result, bn128.multiply(point, int(scalar)))
    return result


def equal(p: G1Point, q: G1Point) -> bool:
    return bn128.eq(p, q)


def is_valid_g1(p) -> bool:
    """Returns whether `p` is a well-formed projective G1 point lying on the curve."""
    if not isinstance(p, tuple) or len(p) != 3:
        return False
    if not all(isinstance(c, FQ) for c in p):
        return False
    return bn128.is_on_curve(p, bn128.b)


def g1_to_bytes(p: G1Point) -> bytes:
    """Canonical encoding: affine x ‖ y, each 32 bytes big-endian; the point at infinity is all zeros."""
    if bn128.is_inf(p):
        return bytes(G1_BYTES_LEN)
    x, y = bn128.normalize(p)
    return x.n.to_bytes(32, byteorder="big") + y.n.to_bytes(32, byteorder="big")


def pairing_product_is_one(pairs: Sequence[tuple[G1Point, G2Point]]) -> bool:
    """Checks Π e(P_i, Q_i) == 1, sharing a single final exponentiation across all Miller loops."""
    acc = bn128.FQ12.one()
    for p, q in pairs:
        if bn128.is_inf(p):
            continue
        acc *= bn128.pairing(q, p, final_exponentiate=False)
    return bn128.final_exponentiate(acc) == bn128.FQ12.one()

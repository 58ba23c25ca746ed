# (C) 2024 Irreducible Inc.

import galois
import numpy as np
import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st
from py_ecc.optimized_bn128 import curve_order

from twist_shout.tests.helpers import random_integers_strategy

from .prime_field import Fr

# 5 generates the multiplicative group of the BN254 scalar field; skipping verification avoids factoring r - 1
GF_R = galois.GF(curve_order, primitive_element=5, verify=False)

elements = st.integers(0, curve_order - 1)


@given(a=elements, b=elements)
@settings(deadline=None)
def test_arithmetic_matches_galois(a: int, b: int) -> None:
    x, y = Fr(a), Fr(b)
    u, v = GF_R(a), GF_R(b)
    assert int(x + y) == int(u + v)
    assert int(x - y) == int(u - v)
    assert int(x * y) == int(u * v)
    assert int(-x) == int(-u)


@given(a=elements)
@settings(deadline=None)
def test_inverse_matches_galois(a: int) -> None:
    assume(a != 0)
    assert int(Fr(a).inverse()) == int(np.reciprocal(GF_R(a)))
    assert Fr(a) * Fr(a).inverse() == Fr.one()


@given(a=elements, e=st.integers(0, 2**20))
@settings(deadline=None)
def test_pow_matches_galois(a: int, e: int) -> None:
    assert int(Fr(a) ** e) == int(GF_R(a) ** e)


def test_values_are_canonical() -> None:
    assert Fr(-1) == Fr.max()
    assert Fr(curve_order + 3) == Fr(3)
    assert Fr(curve_order + 3).value == 3
    assert hash(Fr(curve_order + 3)) == hash(Fr(3))


def test_integers_mix_in() -> None:
    x = Fr(7)
    assert 1 - x == Fr(-6)
    assert x * 3 == Fr(21)
    assert 3 * x == Fr(21)
    assert x + 1 == Fr(8)
    assert x ** -1 == x.inverse()
    assert sum([Fr(1), Fr(2), Fr(3)]) == Fr(6)


def test_bytes() -> None:
    x = Fr(0x0102)
    assert bytes(x) == b"\x02\x01" + bytes(30)
    assert Fr.from_bytes(bytes(x)) == x
    with pytest.raises(ValueError):
        Fr.from_bytes(b"\x00")
    with pytest.raises(ValueError):
        Fr.from_bytes(b"\xff" * 32)  # not reduced
    assert Fr.from_bytes_mod_order(b"\xff" * 64) == Fr((1 << 512) - 1)


def test_random_in_range() -> None:
    for _ in range(100):
        assert 0 <= int(Fr.random()) < curve_order


def test_other_types_are_not_equal() -> None:
    assert Fr(1) != "1"
    assert Fr(3) != 3
    assert len({Fr(3), Fr(curve_order + 3), 3}) == 2
    assert {Fr(3): "x"}.get(3) is None
    with pytest.raises(TypeError):
        Fr(1) + 1.0


@pytest.mark.parametrize_hypothesis(
    slow=(
        settings(deadline=None),
        given(a=st.integers(1, curve_order - 1)),
    ),
    fast=(
        settings(deadline=None, max_examples=1),
        given(a=random_integers_strategy(1, curve_order - 1)),
    ),
)
def test_multiplicative_group(a: int) -> None:
    assert Fr(a) ** (curve_order - 1) == Fr.one()  # Fermat

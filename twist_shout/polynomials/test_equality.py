import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from ..errors import IndexOutOfBounds, ShapeMismatch
from ..finite_fields.prime_field import Fr
from ..utils.utils import int_to_bits
from .equality import EqualityIndicator, evaluate_multilinear_extension, evaluate_one_hot


def bits(x: int, v: int) -> list[Fr]:
    return [Fr(b) for b in int_to_bits(x, v)]


@given(x=st.integers(0, 2**8 - 1))
@settings(deadline=None)
def test_naive_indicator_true(x: int) -> None:
    v = 8
    indicator = EqualityIndicator(Fr, v)
    assert indicator.evaluate_at_point(bits(x, v), bits(x, v)) == Fr.one()


@given(x=st.integers(0, 2**8 - 1), y=st.integers(0, 2**8 - 1))
@settings(deadline=None)
def test_naive_indicator_false(x: int, y: int) -> None:
    v = 8
    indicator = EqualityIndicator(Fr, v)
    assume(y != x)
    assert indicator.evaluate_at_point(bits(x, v), bits(y, v)) == Fr.zero()


def test_indicator_correctness() -> None:
    v = 5  # length 32
    indicator = EqualityIndicator(Fr, v)

    r = [Fr.random() for _ in range(v)]
    array = indicator.evaluate_over_hypercube(r)

    for i in range(1 << v):
        assert array[i] == indicator.evaluate_at_point(bits(i, v), r)
    assert sum(array) == Fr.one()


def test_mle_correctness() -> None:
    v = 5  # length 32
    indicator = EqualityIndicator(Fr, v)

    f = [Fr.random() for _ in range(1 << v)]
    r = [Fr.random() for _ in range(v)]
    actual = evaluate_multilinear_extension(indicator, f, r)  # efficient, linear alg.

    expected = Fr.zero()
    for i in range(1 << v):  # quasilinear, naive alg.
        expected += f[i] * indicator.evaluate_at_point(bits(i, v), r)
    assert actual == expected


@given(index=st.integers(0, 2**6 - 1))
@settings(deadline=None)
def test_one_hot_matches_equality(index: int) -> None:
    v = 6
    point = [Fr.random() for _ in range(v)]
    assert evaluate_one_hot(Fr, v, index, point) == EqualityIndicator(Fr, v).evaluate_at_point(bits(index, v), point)


def test_one_hot_selects() -> None:
    # Σ_x onehot_i(x) ⋅ f(x) = f(i)
    v = 4
    f = [Fr.random() for _ in range(1 << v)]
    for i in range(1 << v):
        selected = sum((evaluate_one_hot(Fr, v, i, bits(x, v)) * f[x] for x in range(1 << v)), Fr.zero())
        assert selected == f[i]


def test_one_hot_bounds() -> None:
    with pytest.raises(IndexOutOfBounds):
        evaluate_one_hot(Fr, 2, 4, [Fr.zero()] * 2)
    with pytest.raises(IndexOutOfBounds):
        evaluate_one_hot(Fr, 2, -1, [Fr.zero()] * 2)
    with pytest.raises(ShapeMismatch):
        evaluate_one_hot(Fr, 2, 1, [Fr.zero()] * 3)

# (C) 2024 Irreducible Inc.

from hypothesis import given, settings
from hypothesis import strategies as st

from ..finite_fields.prime_field import Fr
from ..utils.utils import int_to_bits
from .equality import EqualityIndicator
from .less_than import LessThanIndicator


def bits(x: int, v: int) -> list[Fr]:
    return [Fr(b) for b in int_to_bits(x, v)]


@given(x=st.integers(0, 2**8 - 1), y=st.integers(0, 2**8 - 1))
@settings(deadline=None)
def test_indicator_on_hypercube(x: int, y: int) -> None:
    v = 8
    indicator = LessThanIndicator(Fr, v)
    assert indicator.evaluate_at_point(bits(x, v), bits(y, v)) == Fr(int(x < y))


def test_indicator_is_multilinear_extension() -> None:
    # the O(ν) formula agrees with Σ_{u < w} eq(u, x) ⋅ eq(w, y) at random points
    v = 3
    indicator = LessThanIndicator(Fr, v)
    equality = EqualityIndicator(Fr, v)
    x = [Fr.random() for _ in range(v)]
    y = [Fr.random() for _ in range(v)]
    eq_x = equality.evaluate_over_hypercube(x)
    eq_y = equality.evaluate_over_hypercube(y)
    expected = sum((eq_x[u] * eq_y[w] for w in range(1 << v) for u in range(w)), Fr.zero())
    assert indicator.evaluate_at_point(x, y) == expected


def test_over_hypercube() -> None:
    v = 5
    indicator = LessThanIndicator(Fr, v)
    y = [Fr.random() for _ in range(v)]
    array = indicator.evaluate_over_hypercube(y)
    for u in range(1 << v):
        assert array[u] == indicator.evaluate_at_point(bits(u, v), y)


def test_over_hypercube_at_boolean_point() -> None:
    v = 4
    indicator = LessThanIndicator(Fr, v)
    for y in range(1 << v):
        assert indicator.evaluate_over_hypercube(bits(y, v)) == [Fr(int(u < y)) for u in range(1 << v)]


def test_prefix_sums() -> None:
    # Σ_u f(u) ⋅ lt(u, j) = Σ_{u < j} f(u): the running total before step j
    v = 3
    indicator = LessThanIndicator(Fr, v)
    f = [Fr.random() for _ in range(1 << v)]
    for j in range(1 << v):
        lt = indicator.evaluate_over_hypercube(bits(j, v))
        assert sum((a * b for a, b in zip(f, lt)), Fr.zero()) == sum(f[:j], Fr.zero())


def test_zero_variables() -> None:
    indicator = LessThanIndicator(Fr, 0)
    assert indicator.evaluate_at_point([], []) == Fr.zero()
    assert indicator.evaluate_over_hypercube([]) == [Fr.zero()]

from typing import TypeVar

from twist_shout.errors import IndexOutOfBounds, ShapeMismatch
from twist_shout.finite_fields.finite_field import FiniteFieldElem
from twist_shout.utils.utils import is_bit_set

F = TypeVar("F", bound=FiniteFieldElem)


def eq(field: type[F], x: F, y: F) -> F:
    """
    Evaluation of the multilinear polynomial which indicates the condition x == y.
    """
    return x * y + (field.one() - x) * (field.one() - y)


class EqualityIndicator:
    def __init__(self, field: type[F], v: int) -> None:
        """Constructs an equality indicator polynomial.

        :param field: the field
        :param v: number of variables
        """
        self.field = field
        self.v = v

    def evaluate_at_point(self, x: list[F], y: list[F]) -> F:
        """Evaluates the equality indicator polynomial at a point."""
        # O(ν)-time alg
        assert len(x) == self.v
        assert len(y) == self.v
        value = self.field.one()
        for k in range(self.v):
            value *= eq(self.field, x[k], y[k])
        return value

    def evaluate_over_hypercube(self, r: list[F]) -> list[F]:
        """Evaluates the equality indicator polynomial over the entire hypecube.

        Entry i of the result is eq(r, bits(i)), where bit k of i is the k-th coordinate.
        """
        array = [self.field.one()] * (1 << len(r))
        for k in range(len(r)):
            for i in range(1 << k):
                array[1 << k | i] = array[i] * r[k]
                array[i] -= array[1 << k | i]
        return array


def evaluate_one_hot(field: type[F], v: int, index: int, point: list[F]) -> F:
    """Evaluates the multilinear extension of the indicator of a single hypercube vertex.

    This is eq(bits(index), point), computed in O(ν) without building the 2^ν evaluation table.
    """
    if not 0 <= index < 1 << v:
        raise IndexOutOfBounds(f"index {index} does not fit in {v} variables")
    if len(point) != v:
        raise ShapeMismatch(f"point has {len(point)} coordinates, expected {v}")
    value = field.one()
    for k in range(v):
        value *= point[k] if is_bit_set(index, k) else field.one() - point[k]
    return value


def evaluate_multilinear_extension(indicator: EqualityIndicator, f: list[F], r: list[F]) -> F:
    assert len(f) == 1 << indicator.v
    assert len(r) == indicator.v  # redundant; will happen inside evaluate_over-hypercube
    array = indicator.evaluate_over_hypercube(r)
    return sum((f[i] * array[i] for i in range(1 << indicator.v)), indicator.field.zero())

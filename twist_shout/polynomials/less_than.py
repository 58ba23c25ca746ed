# (C) 2024 Irreducible Inc.

from typing import TypeVar

from twist_shout.finite_fields.finite_field import FiniteFieldElem

from .equality import eq

F = TypeVar("F", bound=FiniteFieldElem)


class LessThanIndicator:
    def __init__(self, field: type[F], v: int) -> None:
        """Constructs the less-than indicator polynomial lt(x, y) on 2ν variables.

        On the hypercube lt(x, y) = 1 exactly when the integer with bits x is smaller than the integer with bits y,
        coordinate 0 being the least significant bit.

        :param field: the field
        :param v: number of variables of each of x and y
        """
        self.field = field
        self.v = v

    def evaluate_at_point(self, x: list[F], y: list[F]) -> F:
        """Evaluates the less-than indicator polynomial at a point."""
        # O(ν)-time alg. scanning from the least significant bit, x < y on the low k + 1 bits iff x_k < y_k, or
        # x_k = y_k and x < y on the low k bits. each step is linear in x_k and in y_k, so this is the MLE.
        assert len(x) == self.v
        assert len(y) == self.v
        value = self.field.zero()
        for k in range(self.v):
            value = (self.field.one() - x[k]) * y[k] + eq(self.field, x[k], y[k]) * value
        return value

    def evaluate_over_hypercube(self, y: list[F]) -> list[F]:
        """Returns { lt(u, y) | u ∈ ℬ_ν } without building the 2^{2ν}-sized table."""
        assert len(y) == self.v
        array = [self.field.zero()] * (1 << self.v)
        for k in range(self.v):
            for i in range(1 << k):  # one multiplication per entry
                array[1 << k | i] = array[i] * y[k]  # u_k = 1: only "equal, and lower bits smaller" survives
                array[i] += y[k] - array[1 << k | i]  # u_k = 0: y_k + (1 - y_k) · lt
        return array

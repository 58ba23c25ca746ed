# (C) 2024 Irreducible Inc.

from __future__ import annotations

from enum import Enum
from typing import Generic, Self, TypeVar

from twist_shout.errors import IndexOutOfBounds, ShapeMismatch
from twist_shout.finite_fields.finite_field import FiniteFieldElem
from twist_shout.utils.utils import bits_mask, is_bit_set, is_power_of_two, remove_bit

from .equality import EqualityIndicator, evaluate_multilinear_extension, evaluate_one_hot

F = TypeVar("F", bound=FiniteFieldElem)


def linearly_interpolate(points: tuple[F, F], r: F) -> F:
    return points[0] + (points[1] - points[0]) * r


class Representation(Enum):
    DENSE = "dense"
    SPARSE = "sparse"


class MultilinearExtension(Generic[F]):
    """The unique multilinear polynomial in ν variables agreeing with a table of 2^ν values on the hypercube.

    Hypercube vertex b ∈ {0,1}^ν is identified with the integer Σ b_k·2^k, so variable k is bit k of the index.
    Two representations share one interface:

    - DENSE keeps every one of the 2^ν evaluations in index order.
    - SPARSE keeps only the nonzero evaluations, keyed by index. One-hot address encodings have exactly one nonzero
      entry per cycle, so binding and evaluating them sparsely costs time proportional to the entries, not to 2^ν.

    Instances are not mutated after construction; `bind`, `add` and friends return new extensions.
    """

    def __init__(
        self,
        field: type[F],
        num_vars: int,
        representation: Representation,
        evaluations: list[F] | None = None,
        entries: dict[int, F] | None = None,
    ) -> None:
        self.field = field
        self.num_vars = num_vars
        self.representation = representation
        if representation is Representation.DENSE:
            assert evaluations is not None and len(evaluations) == 1 << num_vars
            self.evaluations = evaluations
        else:
            assert entries is not None
            self.entries = {index: value for index, value in entries.items() if value}

    @classmethod
    def from_evaluations(cls, field: type[F], evaluations: list[F | int]) -> Self:
        if not is_power_of_two(len(evaluations)):
            raise ShapeMismatch(f"{len(evaluations)} evaluations do not fill a hypercube")
        num_vars = len(evaluations).bit_length() - 1
        return cls(field, num_vars, Representation.DENSE, evaluations=[_to_field(field, e) for e in evaluations])

    @classmethod
    def from_sparse(cls, field: type[F], num_vars: int, entries: dict[int, F | int]) -> Self:
        for index in entries:
            if not 0 <= index < 1 << num_vars:
                raise ShapeMismatch(f"sparse index {index} does not fit in {num_vars} variables")
        return cls(
            field,
            num_vars,
            Representation.SPARSE,
            entries={index: _to_field(field, value) for index, value in entries.items()},
        )

    @classmethod
    def one_hot(cls, field: type[F], num_vars: int, index: int) -> Self:
        if not 0 <= index < 1 << num_vars:
            raise IndexOutOfBounds(f"index {index} does not fit in {num_vars} variables")
        return cls(field, num_vars, Representation.SPARSE, entries={index: field.one()})

    @classmethod
    def zero(cls, field: type[F], num_vars: int) -> Self:
        return cls(field, num_vars, Representation.SPARSE, entries={})

    @property
    def is_sparse(self) -> bool:
        return self.representation is Representation.SPARSE

    def __getitem__(self, index: int) -> F:
        # value at a hypercube vertex
        if not 0 <= index < 1 << self.num_vars:
            raise ShapeMismatch(f"index {index} does not fit in {self.num_vars} variables")
        if self.is_sparse:
            return self.entries.get(index, self.field.zero())
        return self.evaluations[index]

    def __repr__(self) -> str:
        size = len(self.entries) if self.is_sparse else len(self.evaluations)
        return f"MultilinearExtension({self.representation.value}, num_vars={self.num_vars}, size={size})"

    def evaluate(self, point: list[F]) -> F:
        if len(point) != self.num_vars:
            raise ShapeMismatch(f"point has {len(point)} coordinates, expected {self.num_vars}")
        if self.is_sparse:
            # O(k·ν) for k nonzero entries
            return sum(
                (
                    value * evaluate_one_hot(self.field, self.num_vars, index, point)
                    for index, value in self.entries.items()
                ),
                self.field.zero(),
            )
        return evaluate_multilinear_extension(EqualityIndicator(self.field, self.num_vars), self.evaluations, point)

    def bind(self, challenge: F, position: int = 0) -> MultilinearExtension[F]:
        """Fixes variable `position` to `challenge`, returning the extension in the remaining ν - 1 variables.

        The remaining variables keep their relative order, so bit k of a new index is variable k for k < position
        and variable k + 1 otherwise.
        """
        if not 0 <= position < self.num_vars:
            raise ShapeMismatch(f"cannot bind variable {position} of a {self.num_vars}-variate extension")
        if self.is_sparse:
            one_minus = self.field.one() - challenge
            bound: dict[int, F] = {}
            for index, value in self.entries.items():
                reduced = remove_bit(index, position)
                contribution = value * challenge if is_bit_set(index, position) else value * one_minus
                bound[reduced] = bound.get(reduced, self.field.zero()) + contribution
            return MultilinearExtension(self.field, self.num_vars - 1, Representation.SPARSE, entries=bound)

        mask = bits_mask(position)
        evaluations = []
        for i in range(1 << self.num_vars - 1):
            idx0 = i & mask | (i >> position) << position + 1
            pair = (self.evaluations[idx0], self.evaluations[idx0 | 1 << position])
            evaluations.append(linearly_interpolate(pair, challenge))
        return MultilinearExtension(self.field, self.num_vars - 1, Representation.DENSE, evaluations=evaluations)

    def bind_all(self, point: list[F]) -> F:
        """Binds variables 0, 1, …, ν - 1 in order; agrees with `evaluate`."""
        if len(point) != self.num_vars:
            raise ShapeMismatch(f"point has {len(point)} coordinates, expected {self.num_vars}")
        current: MultilinearExtension[F] = self
        for coordinate in point:
            current = current.bind(coordinate)
        return current[0]

    def to_dense(self) -> MultilinearExtension[F]:
        if not self.is_sparse:
            return self
        evaluations = [self.field.zero()] * (1 << self.num_vars)
        for index, value in self.entries.items():
            evaluations[index] = value
        return MultilinearExtension(self.field, self.num_vars, Representation.DENSE, evaluations=evaluations)

    def dense_evaluations(self) -> list[F]:
        return list(self.to_dense().evaluations)

    def add(self, other: MultilinearExtension[F]) -> MultilinearExtension[F]:
        if other.num_vars != self.num_vars:
            raise ShapeMismatch(f"cannot add extensions in {self.num_vars} and {other.num_vars} variables")
        if self.is_sparse and other.is_sparse:
            entries = dict(self.entries)
            for index, value in other.entries.items():
                entries[index] = entries.get(index, self.field.zero()) + value
            return MultilinearExtension(self.field, self.num_vars, Representation.SPARSE, entries=entries)
        left, right = self.dense_evaluations(), other.dense_evaluations()
        return MultilinearExtension(
            self.field, self.num_vars, Representation.DENSE, evaluations=[a + b for a, b in zip(left, right)]
        )

    def __add__(self, other: MultilinearExtension[F]) -> MultilinearExtension[F]:
        return self.add(other)

    def scale(self, scalar: F) -> MultilinearExtension[F]:
        if self.is_sparse:
            entries = {index: value * scalar for index, value in self.entries.items()}
            return MultilinearExtension(self.field, self.num_vars, Representation.SPARSE, entries=entries)
        return MultilinearExtension(
            self.field, self.num_vars, Representation.DENSE, evaluations=[value * scalar for value in self.evaluations]
        )

    def sum_over_hypercube(self) -> F:
        values = self.entries.values() if self.is_sparse else self.evaluations
        return sum(values, self.field.zero())

    def extend_variables(self, extra: int, low: bool = False) -> MultilinearExtension[F]:
        """Embeds f(x) as g(x, z) = f(x) with `extra` new variables z that g does not depend on.

        The new variables are placed above the existing ones, or below them when `low` is set.
        """
        assert extra >= 0
        num_vars = self.num_vars + extra
        if self.is_sparse:
            if low:
                entries = {index << extra | z: v for index, v in self.entries.items() for z in range(1 << extra)}
            else:
                shift = self.num_vars
                entries = {index | z << shift: v for z in range(1 << extra) for index, v in self.entries.items()}
            return MultilinearExtension(self.field, num_vars, Representation.SPARSE, entries=entries)
        if low:
            evaluations = [self.evaluations[i >> extra] for i in range(1 << num_vars)]
        else:
            evaluations = self.evaluations * (1 << extra)
        return MultilinearExtension(self.field, num_vars, Representation.DENSE, evaluations=evaluations)


def _to_field(field: type[F], value: F | int) -> F:
    return field.from_int(value) if isinstance(value, int) else value

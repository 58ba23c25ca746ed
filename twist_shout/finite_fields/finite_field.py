# (C) 2024 Irreducible Inc.

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Generic, Self, TypeVar

R = TypeVar("R")


@dataclass(frozen=True)
class FiniteFieldElem(Generic[R]):
    """A finite field element.

    This class cannot be instantiated directly. Instead, each particular field implementation should subclass this
    and set the field class variable to an instance of FiniteField. Then the class can be instantiated with values
    of the appropriate representation.

    Elements are immutable and hashable. Python integers are accepted on either side of the arithmetic operators and
    are embedded with `from_int`, so that `1 - x` and `x * 3` read the way they are written on paper. Comparison does
    not coerce: `Fr(3) != 3`.
    """

    value: R
    field: ClassVar[FiniteField]

    def _coerce(self, other: Self | int) -> R:
        if isinstance(other, int):
            return self.field.from_int(other)
        if isinstance(other, FiniteFieldElem) and other.field is self.field:
            return other.value
        raise TypeError(f"cannot combine {type(self).__name__} with {type(other).__name__}")

    def __add__(self, other: Self | int) -> Self:
        return self.__class__(self.field.add(self.value, self._coerce(other)))

    def __radd__(self, other: int) -> Self:
        return self.__class__(self.field.add(self._coerce(other), self.value))

    def __mul__(self, other: Self | int) -> Self:
        return self.__class__(self.field.multiply(self.value, self._coerce(other)))

    def __rmul__(self, other: int) -> Self:
        return self.__class__(self.field.multiply(self._coerce(other), self.value))

    def __sub__(self, other: Self | int) -> Self:
        return self.__class__(self.field.subtract(self.value, self._coerce(other)))

    def __rsub__(self, other: int) -> Self:
        return self.__class__(self.field.subtract(self._coerce(other), self.value))

    def __truediv__(self, other: Self | int) -> Self:
        return self.__class__(self.field.divide(self.value, self._coerce(other)))

    def __rtruediv__(self, other: int) -> Self:
        return self.__class__(self.field.divide(self._coerce(other), self.value))

    def __neg__(self) -> Self:
        return self.__class__(self.field.negate(self.value))

    def inverse(self) -> Self:
        return self.__class__(self.field.inverse(self.value))

    def square(self) -> Self:
        return self.__class__(self.field.square(self.value))

    def __pow__(self, exponent: int) -> Self:
        if exponent < 0:
            return self.inverse() ** -exponent
        return self.__class__(self.field.pow(self.value, exponent))

    def __eq__(self, other) -> bool:
        # only elements of the same field compare equal; an int never does, so equality agrees with hashing.
        if not isinstance(other, FiniteFieldElem) or other.field is not self.field:
            return NotImplemented
        return bool(self.value == other.value)

    def __str__(self) -> str:
        return self.field.format_str(self.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.field.format_repr(self.value)})"

    def __bytes__(self) -> bytes:
        return self.field.to_bytes(self.value)

    def is_zero(self) -> bool:
        return bool(self.value == self.field.zero())

    def __bool__(self) -> bool:
        return not self.is_zero()

    @classmethod
    def zero(cls) -> Self:
        return cls(cls.field.zero())

    @classmethod
    def one(cls) -> Self:
        return cls(cls.field.one())

    @classmethod
    def random(cls) -> Self:
        return cls(cls.field.random())

    @classmethod
    def from_int(cls, val: int) -> Self:
        return cls(cls.field.from_int(val))

    @classmethod
    def from_bytes(cls, serialized: bytes) -> Self:
        return cls(cls.field.from_bytes(serialized))


class FiniteField(ABC, Generic[R]):
    """A finite field implementation.

    All finite fields have order p^n, where p is a prime number. p is the field characteristic and n is the degree
    of the field extension of GF(p^n) over the base field GF(p). An instance of FiniteField encapsulates the
    representation of field elements and the logic for all basic field operations: addition, negation, multiplication,
    and inversion.
    """

    @property
    @abstractmethod
    def characteristic(self) -> int:
        """The field characteristic, ie. the order of the base field."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """The dimension of the field as a vector space over its base field."""
        pass

    @property
    def order(self) -> int:
        return self.characteristic**self.dimension

    def zero(self) -> R:
        return self.from_int(0)

    def one(self) -> R:
        return self.from_int(1)

    @abstractmethod
    def random(self) -> R:
        pass

    @abstractmethod
    def add(self, left: R, right: R) -> R:
        pass

    @abstractmethod
    def subtract(self, left: R, right: R) -> R:
        pass

    @abstractmethod
    def negate(self, operand: R) -> R:
        pass

    @abstractmethod
    def multiply(self, left: R, right: R) -> R:
        pass

    def square(self, operand: R) -> R:
        return self.multiply(operand, operand)

    def pow(self, base: R, exponent: int) -> R:
        acc = self.one()
        val = base

        while exponent:
            if exponent % 2:
                acc = self.multiply(acc, val)
            val = self.square(val)
            exponent >>= 1

        return acc

    @abstractmethod
    def inverse(self, operand: R) -> R:
        pass

    def divide(self, left: R, right: R) -> R:
        return self.multiply(left, self.inverse(right))

    @abstractmethod
    def format_str(self, elem: R) -> str:
        pass

    @abstractmethod
    def format_repr(self, elem: R) -> str:
        pass

    @abstractmethod
    def to_bytes(self, elem: R) -> bytes:
        pass

    @abstractmethod
    def from_bytes(self, serialized: bytes) -> R:
        pass

    @property
    @abstractmethod
    def bytes_len(self) -> int:
        pass

    @abstractmethod
    def from_int(self, val: int) -> R:
        """Creates a field element from an integer.

        The integer argument will be automatically converted to val % p, where p is the field's prime characteristic.
        """
        pass

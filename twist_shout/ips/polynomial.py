from typing import Generic, TypeVar

from ..finite_fields.finite_field import FiniteFieldElem

F = TypeVar("F", bound=FiniteFieldElem)


class Polynomial(Generic[F]):
    """A sparse multivariate polynomial, keyed by multidegree.

    Used as the composition g(m₀(x), …, m_{k-1}(x)) inside a sum-check, where the m_j are multilinear. Because each
    m_j is linear in every variable, the total degree of g bounds the degree of every round polynomial.
    """

    def __init__(self, field: type[F], variables: int, data: dict[tuple[int, ...], F]) -> None:
        self.field = field
        self.variables = variables
        self.degree = 0  # `degree` refers to the _total degree_ (!) of the multivariate polynomial.
        for multidegree, coefficient in data.items():
            assert len(multidegree) == variables  # each key is a multi-degree of length `variables`
            assert all(degree >= 0 for degree in multidegree)  # all exponents are nonnegative
            assert coefficient  # pointless to have 0 coefficients; let's just exclude
            self.degree = max(self.degree, sum(multidegree))
        self.data = data

    def evaluate(self, argument: list[F]) -> F:
        assert len(argument) == self.variables, f"arguments: {len(argument)}, variables: {self.variables}"
        result = self.field.zero()
        for multidegree, coefficient in self.data.items():
            monomial = coefficient
            for i, degree in enumerate(multidegree):
                if degree:
                    monomial *= argument[i] ** degree
            result += monomial
        return result


def product(field: type[F], variables: int) -> Polynomial[F]:
    """The product monomial x₀ ⋅ x₁ ⋯ x_{variables-1}."""
    return Polynomial(field, variables, {tuple([1] * variables): field.one()})

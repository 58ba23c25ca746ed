# (C) 2024 Irreducible Inc.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from twist_shout.errors import DegreeViolation, ShapeMismatch
from twist_shout.finite_fields.finite_field import FiniteFieldElem
from twist_shout.ips.polynomial import Polynomial
from twist_shout.ips.transcript import Transcript
from twist_shout.polynomials.multilinear import linearly_interpolate

from ..utils.utils import is_power_of_two

F = TypeVar("F", bound=FiniteFieldElem)

logger = logging.getLogger(__name__)


def barycentric_weights(field: type[F], degree: int) -> list[F]:
    # begin precomputation of barycentric constants; see https://people.maths.ox.ac.uk/trefethen/barycentric.pdf
    # over the nodes 0, …, d: w_i = 1 / Π_{j ≠ i} (i - j).
    w = []
    for i in range(degree + 1):
        product = field.one()
        for j in range(degree + 1):
            if j == i:
                continue
            product *= field.from_int(i - j)
        w.append(product.inverse())
    return w


def interpolate(field: type[F], evaluations: list[F], point: F, weights: list[F] | None = None) -> F:
    # interpreting "evaluations" as the evals of an unknown polynomial of degree ≤ d at the points (0, ..., d),
    # returns the evaluation of said polynomial at `point`. uses barycentric extrapolation.
    # variant w/o division: ref: https://gitlab.com/ulvetanna/frobenius/-/blob/main/src/polynomial/univariate.rs
    degree = len(evaluations) - 1
    w = barycentric_weights(field, degree) if weights is None else weights
    assert len(w) == degree + 1

    terms_partial_prod = field.one()
    result = field.zero()
    for i in range(degree + 1):
        term = point - field.from_int(i)
        result *= term
        result += evaluations[i] * w[i] * terms_partial_prod
        terms_partial_prod *= term
    return result


class SumcheckProver(Generic[F]):
    """
    multilinears: a list of _multilinear_ polynomials, of equal sizes, each given by its evaluations on the hypercube.
    composition: the polynomial g combining them; we prove the value of Σ_x g(m₀(x), …, m_{k-1}(x)).
    degree_bound: the degree d of every round polynomial sent; the composition's total degree must not exceed it.

    variables are bound from the lowest index bit upward, so round i fixes variable i.
    """

    def __init__(
        self, field: type[F], multilinears: list[list[F]], composition: Polynomial[F], degree_bound: int | None = None
    ) -> None:
        if not multilinears:
            raise ShapeMismatch("sum-check needs at least one multilinear")
        length = len(multilinears[0])
        if not is_power_of_two(length):
            raise ShapeMismatch(f"multilinear of length {length} does not fill a hypercube")
        if not all(len(multilinear) == length for multilinear in multilinears):
            raise ShapeMismatch("multilinears are of unequal lengths")
        if composition.variables != len(multilinears):
            raise ShapeMismatch(f"composition takes {composition.variables} inputs, got {len(multilinears)}")
        if degree_bound is None:
            degree_bound = composition.degree
        if composition.degree > degree_bound:
            raise DegreeViolation(f"composition of degree {composition.degree} exceeds the bound {degree_bound}")
        self.field = field
        self.v = int(math.log2(length))
        self.multilinears = [list(multilinear) for multilinear in multilinears]
        self.composition = composition
        self.degree = max(degree_bound, 1)
        self.challenges: list[F] = []
        self.round = 0
        self.w = barycentric_weights(field, self.degree)

    def compute_round_polynomial(self) -> list[F]:
        # computes the first half of the round: everything up until the round polynomial is sent to the verifier.
        # returns the list of evaluations of g_{self.round}(k) at the points [0, ..., d]; length is d + 1
        assert self.round in range(self.v)

        evaluations = [self.field.zero()] * (self.degree + 1)
        round_v = self.v - self.round
        nodes = [self.field.from_int(k) for k in range(2, self.degree + 1)]

        for i in range(1 << round_v - 1):
            arguments = [[multilinear[i << 1 | k] for multilinear in self.multilinears] for k in range(2)]
            evaluations[0] += self.composition.evaluate(arguments[0])
            evaluations[1] += self.composition.evaluate(arguments[1])
            for k, node in enumerate(nodes, start=2):
                argument = [
                    linearly_interpolate((arguments[0][j], arguments[1][j]), node)
                    for j in range(self.composition.variables)
                ]
                evaluations[k] += self.composition.evaluate(argument)
        return evaluations

    def receive_challenge(self, r: F) -> None:
        self.challenges.append(r)
        round_v = self.v - self.round
        for j in range(len(self.multilinears)):  # classical folding
            self.multilinears[j] = [
                linearly_interpolate((self.multilinears[j][i << 1], self.multilinears[j][i << 1 | 1]), r)
                for i in range(1 << round_v - 1)
            ]
        self.round += 1

    def interpolate(self, evaluations: list[F], point: F) -> F:
        assert len(evaluations) == self.degree + 1
        return interpolate(self.field, evaluations, point, self.w)

    def final_evaluations(self) -> list[F]:
        # each multilinear evaluated at the challenge point
        assert self.round == self.v
        return [multilinear[0] for multilinear in self.multilinears]

    def query(self) -> F:
        return self.composition.evaluate(self.final_evaluations())

    def sum(self) -> F:
        # helper method: returns the actual statement that we're proving;
        # namely, it's the actual sum of g over the entire cube.
        return sum(
            (
                self.composition.evaluate([multilinear[h] for multilinear in self.multilinears])
                for h in range(1 << self.v)
            ),
            self.field.zero(),
        )


@dataclass(frozen=True)
class SumcheckProof(Generic[F]):
    # round i carries g_i(0), …, g_i(d)
    round_polynomials: tuple[tuple[F, ...], ...]


@dataclass(frozen=True)
class SumcheckResult(Generic[F]):
    accepted: bool
    challenges: tuple[F, ...]
    # claimed value of the composition at `challenges`; meaningful only when accepted
    final_claim: F


def prove_sumcheck(
    prover: SumcheckProver[F], claim: F, transcript: Transcript, label: bytes = b"sumcheck"
) -> tuple[SumcheckProof[F], list[F]]:
    """Runs all rounds non-interactively, drawing each challenge from the transcript.

    The claim itself is not absorbed here: callers bind it to the transcript beforehand, the same way on both sides.
    """
    round_polynomials = []
    for _ in range(prover.v):
        evaluations = prover.compute_round_polynomial()
        if evaluations[0] + evaluations[1] != claim:
            logger.warning("round %d of %s does not match the running claim", prover.round, label.decode())
        transcript.append_scalars(label + b" round", evaluations)
        challenge = transcript.challenge(label + b" challenge")
        prover.receive_challenge(challenge)
        claim = prover.interpolate(evaluations, challenge)
        round_polynomials.append(tuple(evaluations))
    return SumcheckProof(tuple(round_polynomials)), list(prover.challenges)


def verify_sumcheck(
    field: type[F],
    proof: SumcheckProof[F],
    claim: F,
    num_vars: int,
    degree_bound: int,
    transcript: Transcript,
    label: bytes = b"sumcheck",
) -> SumcheckResult[F]:
    """Replays the rounds of `proof` against `claim`, returning the reduced claim at the challenge point.

    Every round is absorbed and every challenge drawn even after a failed check, so the transcript ends in the same
    state whatever the outcome. Never raises on a malformed proof.
    """
    degree = max(degree_bound, 1)
    weights = barycentric_weights(field, degree)
    rounds = proof.round_polynomials if isinstance(proof.round_polynomials, tuple) else ()
    accepted = len(rounds) == num_vars
    challenges = []
    for i in range(num_vars):
        evaluations = list(rounds[i]) if i < len(rounds) and isinstance(rounds[i], (tuple, list)) else []
        if len(evaluations) != degree + 1 or not all(isinstance(e, field) for e in evaluations):
            accepted = False
            evaluations = [field.zero()] * (degree + 1)
        if evaluations[0] + evaluations[1] != claim:
            accepted = False
        transcript.append_scalars(label + b" round", evaluations)
        challenge = transcript.challenge(label + b" challenge")
        challenges.append(challenge)
        claim = interpolate(field, evaluations, challenge, weights)
    return SumcheckResult(accepted, tuple(challenges), claim)

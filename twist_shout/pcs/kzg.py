# (C) 2024 Irreducible Inc.

"""Multilinear KZG commitments (Papamanthou-Shi-Tamassia) over BN254.

The structured reference string hides a secret point τ ∈ Frⁿ. A ν-variable extension f, ν ≤ n, is identified with
the polynomial over the last ν coordinates of τ, and is committed as C = [f(τ_{n-ν}, …, τ_{n-1})]₁. Because f is given
by its hypercube values, the commitment is an MSM against the Lagrange basis [eq(τ, b)]₁, b ∈ {0,1}^ν.

An opening at z uses the decomposition f(x) - f(z) = Σ_i (x_i - z_i) ⋅ q_i(x_{i+1}, …), where q_i is the difference of
the two halves of f with its first i variables already bound to z. The verifier checks

    e(C - v⋅G₁ + Σ z_i⋅π_i, G₂) == Π e(π_i, [τ_i]₂),

with π_i = [q_i(τ)]₁, which costs ν + 1 pairings regardless of 2^ν.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from twist_shout.errors import IndexOutOfBounds, SizeMismatch, UnsupportedSize
from twist_shout.finite_fields.prime_field import Fr
from twist_shout.ips.transcript import Transcript
from twist_shout.polynomials.equality import EqualityIndicator
from twist_shout.polynomials.multilinear import MultilinearExtension
from twist_shout.utils.utils import int_to_bits

from . import groups

logger = logging.getLogger(__name__)

MAX_SUPPORTED_VARIABLES = 16
DEFAULT_SECRET = b"twist-shout insecure test setup, seed 42"


@dataclass(frozen=True)
class Commitment:
    point: groups.G1Point

    def __bytes__(self) -> bytes:
        return groups.g1_to_bytes(self.point)

    def is_well_formed(self) -> bool:
        return groups.is_valid_g1(self.point)


@dataclass(frozen=True)
class OpeningProof:
    quotients: tuple[groups.G1Point, ...]


@dataclass(frozen=True)
class ProverKey:
    num_vars: int
    # lagrange_bases[m] holds [eq((τ_{n-m}, …, τ_{n-1}), b)]₁ for every b in the m-dimensional hypercube.
    lagrange_bases: tuple[tuple[groups.G1Point, ...], ...]

    def trim(self, num_vars: int) -> ProverKey:
        if not 0 <= num_vars <= self.num_vars:
            raise UnsupportedSize(f"key supports at most {self.num_vars} variables, {num_vars} requested")
        return ProverKey(num_vars, self.lagrange_bases[: num_vars + 1])

    @property
    def basis(self) -> tuple[groups.G1Point, ...]:
        return self.lagrange_bases[self.num_vars]


@dataclass(frozen=True)
class VerifierKey:
    num_vars: int
    g1: groups.G1Point
    g2: groups.G2Point
    # tau_g2[i] is [τ_{n-ν+i}]₂, the coordinate matching variable i of a ν-variable extension
    tau_g2: tuple[groups.G2Point, ...]

    def trim(self, num_vars: int) -> VerifierKey:
        if not 0 <= num_vars <= self.num_vars:
            raise UnsupportedSize(f"key supports at most {self.num_vars} variables, {num_vars} requested")
        return VerifierKey(num_vars, self.g1, self.g2, self.tau_g2[self.num_vars - num_vars :])


def derive_trapdoor(n: int, secret: bytes) -> list[Fr]:
    return [
        Fr.from_bytes_mod_order(hashlib.shake_256(secret + i.to_bytes(4, byteorder="little")).digest(64))
        for i in range(n)
    ]


def setup(n: int, secret: bytes = DEFAULT_SECRET) -> tuple[ProverKey, VerifierKey]:
    """Derives keys for extensions in up to n variables.

    The trapdoor τ is a pure function of `secret`, which stands in for the output of a trusted-setup ceremony. Anyone
    who knows the secret can forge openings, so the default is for testing only.
    """
    if not 0 <= n <= MAX_SUPPORTED_VARIABLES:
        raise UnsupportedSize(f"setup supports 0 to {MAX_SUPPORTED_VARIABLES} variables, {n} requested")
    logger.debug("deriving a reference string for %d variables", n)
    tau = derive_trapdoor(n, secret)
    bases = []
    for m in range(n + 1):
        suffix = tau[n - m :]
        weights = EqualityIndicator(Fr, m).evaluate_over_hypercube(suffix)
        bases.append(tuple(groups.multiply(groups.G1, weight) for weight in weights))
    tau_g2 = tuple(groups.multiply(groups.G2, t) for t in tau)
    return ProverKey(n, tuple(bases)), VerifierKey(n, groups.G1, groups.G2, tau_g2)


def _commit_to(basis: tuple[groups.G1Point, ...], mle: MultilinearExtension[Fr]) -> groups.G1Point:
    if mle.is_sparse:
        indices = list(mle.entries)
        return groups.msm([basis[i] for i in indices], [mle.entries[i] for i in indices])
    return groups.msm(basis, mle.evaluations)


def _vertex(num_vars: int, index: int) -> list[Fr]:
    return [Fr.from_int(bit) for bit in int_to_bits(index, num_vars)]


def _check_size(key: ProverKey, mle: MultilinearExtension[Fr]) -> None:
    if mle.num_vars != key.num_vars:
        raise SizeMismatch(f"{mle.num_vars}-variate extension used with a {key.num_vars}-variate key")


class MultilinearKZG:
    def commit(self, key: ProverKey, mle: MultilinearExtension[Fr]) -> Commitment:
        _check_size(key, mle)
        return Commitment(_commit_to(key.basis, mle))

    def open(self, key: ProverKey, mle: MultilinearExtension[Fr], point: list[Fr]) -> tuple[Fr, OpeningProof]:
        _check_size(key, mle)
        value = mle.evaluate(point)  # raises ShapeMismatch on a wrong-length point
        quotients = []
        current = mle
        for i, z in enumerate(point):
            remaining = key.num_vars - i - 1
            if current.is_sparse:
                # q(y) = f(1, y) - f(0, y)
                entries: dict[int, Fr] = {}
                for index, coefficient in current.entries.items():
                    sign = coefficient if index & 1 else -coefficient
                    entries[index >> 1] = entries.get(index >> 1, Fr.zero()) + sign
                quotient = MultilinearExtension.from_sparse(Fr, remaining, entries)
            else:
                evaluations = current.evaluations
                quotient = MultilinearExtension.from_evaluations(
                    Fr, [evaluations[j << 1 | 1] - evaluations[j << 1] for j in range(1 << remaining)]
                )
            quotients.append(_commit_to(key.lagrange_bases[remaining], quotient))
            current = current.bind(z)
        assert current[0] == value
        return value, OpeningProof(tuple(quotients))

    def verify(self, key: VerifierKey, commitment: Commitment, point: list[Fr], value: Fr, proof: OpeningProof) -> bool:
        if not isinstance(commitment, Commitment) or not isinstance(proof, OpeningProof):
            return False
        if not isinstance(value, Fr) or len(point) != key.num_vars or not all(isinstance(z, Fr) for z in point):
            return False
        if not isinstance(proof.quotients, tuple) or len(proof.quotients) != key.num_vars:
            return False
        if not groups.is_valid_g1(commitment.point) or not all(groups.is_valid_g1(q) for q in proof.quotients):
            return False

        lhs = groups.add(commitment.point, groups.neg(groups.multiply(key.g1, value)))
        for z, quotient in zip(point, proof.quotients):
            lhs = groups.add(lhs, groups.multiply(quotient, z))
        pairs = [(lhs, key.g2)]
        pairs += [(groups.neg(quotient), tau) for quotient, tau in zip(proof.quotients, key.tau_g2)]
        return groups.pairing_product_is_one(pairs)

    def open_index(self, key: ProverKey, mle: MultilinearExtension[Fr], index: int) -> tuple[Fr, OpeningProof]:
        """Opens entry `index` of the committed vector, i.e. the extension at the hypercube vertex with those bits."""
        if not 0 <= index < 1 << key.num_vars:
            raise IndexOutOfBounds(f"index {index} outside a vector of length {1 << key.num_vars}")
        return self.open(key, mle, _vertex(key.num_vars, index))

    def verify_index(
        self, key: VerifierKey, commitment: Commitment, index: int, value: Fr, proof: OpeningProof
    ) -> bool:
        if not isinstance(index, int) or not 0 <= index < 1 << key.num_vars:
            return False
        return self.verify(key, commitment, _vertex(key.num_vars, index), value, proof)

    def batch_open(
        self, key: ProverKey, mles: list[MultilinearExtension[Fr]], point: list[Fr], transcript: Transcript
    ) -> tuple[list[Fr], OpeningProof]:
        """Opens several extensions at one point with a single proof for their random linear combination.

        The claimed values are absorbed before the combining scalar is drawn, so the verifier must replay the same
        transcript through `batch_verify`.
        """
        for mle in mles:
            _check_size(key, mle)
        values = [mle.evaluate(point) for mle in mles]
        transcript.append_scalars(b"kzg batch values", values)
        rho = transcript.challenge(b"kzg batch combination")
        combined = MultilinearExtension.zero(Fr, key.num_vars)
        power = Fr.one()
        for mle in mles:
            combined = combined.add(mle.scale(power))
            power *= rho
        _, proof = self.open(key, combined, point)
        return values, proof

    def batch_verify(
        self,
        key: VerifierKey,
        commitments: list[Commitment],
        point: list[Fr],
        values: list[Fr],
        proof: OpeningProof,
        transcript: Transcript,
    ) -> bool:
        if len(commitments) != len(values) or not all(isinstance(v, Fr) for v in values):
            return False
        if not all(isinstance(c, Commitment) and groups.is_valid_g1(c.point) for c in commitments):
            return False
        transcript.append_scalars(b"kzg batch values", values)
        rho = transcript.challenge(b"kzg batch combination")
        combined_point = groups.Z1
        combined_value = Fr.zero()
        power = Fr.one()
        for commitment, value in zip(commitments, values):
            combined_point = groups.add(combined_point, groups.multiply(commitment.point, power))
            combined_value += value * power
            power *= rho
        return self.verify(key, Commitment(combined_point), point, combined_value, proof)


KZG = MultilinearKZG()

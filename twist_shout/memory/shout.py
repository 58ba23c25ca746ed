# (C) 2024 Irreducible Inc.

"""Shout: memory checking for read-only lookup tables.

The table never changes, so there is no Val and no ordering: with T(a) the table, ra(a, j) the one-hot encoding of
lookup j and rv(j) its result, one sum-check over k + t variables shows

    Σ E⋅ra⋅(T + γ) + γ²⋅EB⋅(ra² - ra) = rv(r_c) + γ,

where E = eq(r_c, j) and EB = eq(r_b, (a, j)) for random points r_c and r_b. The γ term forces exactly one address per
lookup and the EB term forces ra to be boolean.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from twist_shout.errors import UnsupportedSize
from twist_shout.finite_fields.prime_field import Fr
from twist_shout.ips.polynomial import Polynomial
from twist_shout.ips.sumcheck import SumcheckProof, SumcheckProver, prove_sumcheck, verify_sumcheck
from twist_shout.ips.transcript import Transcript
from twist_shout.pcs.kzg import KZG, Commitment, OpeningProof, ProverKey, VerifierKey
from twist_shout.pcs.scheme import CommitmentScheme
from twist_shout.polynomials.equality import EqualityIndicator
from twist_shout.polynomials.multilinear import MultilinearExtension

from .trace import LookupTable

logger = logging.getLogger(__name__)

PROTOCOL_LABEL = b"shout"
READ_CHECKING_LABEL = b"shout read checking"
READ_CHECKING_DEGREE = 3


@dataclass(frozen=True)
class ShoutProof:
    log_table_size: int
    log_num_lookups: int

    table_commitment: Commitment
    ra_commitment: Commitment
    rv_commitment: Commitment

    rv_claim: Fr  # rv(r_c)
    read_checking_sumcheck: SumcheckProof[Fr]
    ra_claim: Fr  # ra(ρ_a, ρ_j)
    table_claim: Fr  # T(ρ_a)

    rv_opening: OpeningProof
    ra_opening: OpeningProof
    table_opening: OpeningProof


def read_checking_composition(gamma: Fr) -> Polynomial[Fr]:
    """The read checking integrand, over the inputs [E, EB, ra, T]."""
    gamma_2 = gamma * gamma
    terms = {
        (1, 0, 1, 1): Fr.one(),  # E⋅ra⋅T
        (1, 0, 1, 0): gamma,  # γ⋅E⋅ra
        (0, 1, 2, 0): gamma_2,  # γ²⋅EB⋅ra²
        (0, 1, 1, 0): -gamma_2,  # -γ²⋅EB⋅ra
    }
    return Polynomial(Fr, 4, {multidegree: c for multidegree, c in terms.items() if c})


def commit_table(pk: ProverKey, table: LookupTable, scheme: CommitmentScheme = KZG) -> Commitment:
    """The commitment a verifier who knows the table expects to find in a proof."""
    return scheme.commit(pk.trim(table.log_size), MultilinearExtension.from_evaluations(Fr, table.entries))


def _start_transcript(k: int, t: int, commitments: list[Commitment]) -> tuple[Transcript, list[Fr], Fr, list[Fr]]:
    transcript = Transcript(PROTOCOL_LABEL)
    transcript.append_int(b"log table size", k)
    transcript.append_int(b"log num lookups", t)
    for name, commitment in zip((b"table", b"ra", b"rv"), commitments):
        transcript.append(name, bytes(commitment))
    r_cycle = transcript.challenge_vector(b"r_cycle", t)
    gamma = transcript.challenge(b"gamma")
    r_booleanity = transcript.challenge_vector(b"r_booleanity", k + t)
    return transcript, r_cycle, gamma, r_booleanity


def prove(pk: ProverKey, table: LookupTable, scheme: CommitmentScheme = KZG) -> ShoutProof:
    """Proves that every lookup recorded in `table` returned the table entry at its index.

    The number of lookups is padded to a power of two with lookups of index 0.
    """
    table.validate()
    k, t = table.log_size, table.log_num_lookups
    n = k + t
    if n > pk.num_vars:
        raise UnsupportedSize(f"lookups need {n} variables, key supports {pk.num_vars}")

    padding = (1 << t) - len(table.indices)
    indices = table.indices + [0] * padding
    values = table.claimed_values() + [table.entries[0]] * padding
    wrong = [j for j, (index, value) in enumerate(zip(indices, values)) if table.entries[index] != value]
    if wrong:
        logger.warning("lookups %s disagree with the table; the proof will not verify", wrong)

    logger.debug("encoding %d lookups into a table of %d entries", 1 << t, 1 << k)
    table_mle = MultilinearExtension.from_evaluations(Fr, table.entries)
    ra = MultilinearExtension.from_sparse(Fr, n, {index | j << k: Fr.one() for j, index in enumerate(indices)})
    rv = MultilinearExtension.from_evaluations(Fr, values)

    logger.debug("committing")
    key, table_key, cycle_key = pk.trim(n), pk.trim(k), pk.trim(t)
    commitments = [scheme.commit(table_key, table_mle), scheme.commit(key, ra), scheme.commit(cycle_key, rv)]
    transcript, r_cycle, gamma, r_booleanity = _start_transcript(k, t, commitments)

    rv_claim = rv.evaluate(r_cycle)
    transcript.append_scalar(b"rv claim", rv_claim)

    logger.debug("read checking sum-check over %d variables", n)
    e = MultilinearExtension.from_evaluations(Fr, EqualityIndicator(Fr, t).evaluate_over_hypercube(r_cycle))
    multilinears = [
        e.extend_variables(k, low=True).evaluations,
        EqualityIndicator(Fr, n).evaluate_over_hypercube(r_booleanity),
        ra.dense_evaluations(),
        table_mle.extend_variables(t).evaluations,
    ]
    prover = SumcheckProver(Fr, multilinears, read_checking_composition(gamma), READ_CHECKING_DEGREE)
    read_checking_sumcheck, rho = prove_sumcheck(prover, rv_claim + gamma, transcript, READ_CHECKING_LABEL)
    _, _, ra_claim, table_claim = prover.final_evaluations()
    transcript.append_scalars(b"read checking claims", [ra_claim, table_claim])

    logger.debug("opening")
    _, rv_opening = scheme.open(cycle_key, rv, r_cycle)
    _, ra_opening = scheme.open(key, ra, rho)
    _, table_opening = scheme.open(table_key, table_mle, rho[:k])

    return ShoutProof(
        k,
        t,
        *commitments,
        rv_claim=rv_claim,
        read_checking_sumcheck=read_checking_sumcheck,
        ra_claim=ra_claim,
        table_claim=table_claim,
        rv_opening=rv_opening,
        ra_opening=ra_opening,
        table_opening=table_opening,
    )


def _commitments(proof: ShoutProof) -> list[Commitment]:
    return [proof.table_commitment, proof.ra_commitment, proof.rv_commitment]


def _well_formed(vk: VerifierKey, proof: ShoutProof) -> bool:
    if not isinstance(proof, ShoutProof):
        return False
    k, t = proof.log_table_size, proof.log_num_lookups
    if not isinstance(k, int) or not isinstance(t, int) or k < 0 or t < 0 or k + t > vk.num_vars:
        return False
    if not isinstance(proof.read_checking_sumcheck, SumcheckProof):
        return False
    if not all(isinstance(c, Commitment) and c.is_well_formed() for c in _commitments(proof)):
        return False
    return all(isinstance(claim, Fr) for claim in (proof.rv_claim, proof.ra_claim, proof.table_claim))


def verify(
    vk: VerifierKey,
    proof: ShoutProof,
    expected_table_commitment: Commitment | None = None,
    scheme: CommitmentScheme = KZG,
) -> bool:
    """Accepts iff the sum-check is consistent and all three openings verify. Never raises.

    Passing `expected_table_commitment` (see `commit_table`) additionally pins the proof to a known table.
    """
    if not _well_formed(vk, proof):
        return False
    k, t = proof.log_table_size, proof.log_num_lookups
    n = k + t
    key, table_key, cycle_key = vk.trim(n), vk.trim(k), vk.trim(t)

    transcript, r_cycle, gamma, r_booleanity = _start_transcript(k, t, _commitments(proof))
    transcript.append_scalar(b"rv claim", proof.rv_claim)

    read_checking = verify_sumcheck(
        Fr,
        proof.read_checking_sumcheck,
        proof.rv_claim + gamma,
        n,
        READ_CHECKING_DEGREE,
        transcript,
        READ_CHECKING_LABEL,
    )
    rho = list(read_checking.challenges)
    transcript.append_scalars(b"read checking claims", [proof.ra_claim, proof.table_claim])
    expected = read_checking_composition(gamma).evaluate(
        [
            EqualityIndicator(Fr, t).evaluate_at_point(r_cycle, rho[k:]),
            EqualityIndicator(Fr, n).evaluate_at_point(r_booleanity, rho),
            proof.ra_claim,
            proof.table_claim,
        ]
    )

    checks = [
        read_checking.accepted,
        read_checking.final_claim == expected,
        expected_table_commitment is None or bytes(expected_table_commitment) == bytes(proof.table_commitment),
        scheme.verify(cycle_key, proof.rv_commitment, r_cycle, proof.rv_claim, proof.rv_opening),
        scheme.verify(key, proof.ra_commitment, rho, proof.ra_claim, proof.ra_opening),
        scheme.verify(table_key, proof.table_commitment, rho[:k], proof.table_claim, proof.table_opening),
    ]
    if not all(checks):
        logger.debug("rejected; failed checks %s", [i for i, ok in enumerate(checks) if not ok])
    return all(checks)

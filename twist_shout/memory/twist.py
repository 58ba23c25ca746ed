# (C) 2024 Irreducible Inc.

"""Twist: memory checking for read-write memory.

A trace of T = 2^t cycles against K = 2^k cells is encoded by polynomials over (address, cycle), with hypercube index
a | j << k, so the k address variables come first:

- ra(a, j): 1 if cycle j touches cell a, else 0 (one-hot in a for every j);
- rv(j), wv(j): the value read by cycle j, and the value the touched cell holds after it;
- Inc(a, j) = ra(a, j) ⋅ (wv(j) - Val(a, j)): the change cycle j makes to cell a;
- Val(a, j) = Σ_{j' < j} Inc(a, j'): the contents of cell a before cycle j. Val is never committed.

With E = eq(r_c, j), EA = eq((r_a, r_c), (a, j)) and a random γ, one sum-check over k + t variables shows

    Σ E⋅ra⋅(Val + γ) + γ²⋅EA⋅ra⋅(wv - Val) + γ³⋅EA⋅(ra² - ra) = rv(r_c) + γ + γ²⋅Inc(r_a, r_c),

covering read correctness, exactly one address per cycle, write correctness and booleanity of ra. The leftover claim
about Val at the final point (ρ_a, ρ_j) is reduced by a second sum-check,

    Val(ρ_a, ρ_j) = Σ_{j'} Inc(ρ_a, j')⋅lt(j', ρ_j),

after which every remaining claim is about a committed polynomial and is certified by an opening.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from twist_shout.errors import UnsupportedSize
from twist_shout.finite_fields.prime_field import Fr
from twist_shout.ips.polynomial import Polynomial, product
from twist_shout.ips.sumcheck import SumcheckProof, SumcheckProver, prove_sumcheck, verify_sumcheck
from twist_shout.ips.transcript import Transcript
from twist_shout.pcs.kzg import KZG, Commitment, OpeningProof, ProverKey, VerifierKey
from twist_shout.pcs.scheme import CommitmentScheme
from twist_shout.polynomials.equality import EqualityIndicator
from twist_shout.polynomials.less_than import LessThanIndicator
from twist_shout.polynomials.multilinear import MultilinearExtension

from .trace import MemoryTrace

logger = logging.getLogger(__name__)

PROTOCOL_LABEL = b"twist"
READ_WRITE_LABEL = b"twist read-write checking"
VAL_EVALUATION_LABEL = b"twist val evaluation"
READ_WRITE_DEGREE = 3
VAL_EVALUATION_DEGREE = 2


@dataclass(frozen=True)
class TwistProof:
    log_memory_size: int
    log_trace_length: int

    ra_commitment: Commitment
    inc_commitment: Commitment
    rv_commitment: Commitment
    wv_commitment: Commitment

    rv_claim: Fr  # rv(r_c)
    inc_claim: Fr  # Inc(r_a, r_c)
    read_write_sumcheck: SumcheckProof[Fr]
    ra_claim: Fr  # ra(ρ_a, ρ_j)
    val_claim: Fr  # Val(ρ_a, ρ_j)
    wv_claim: Fr  # wv(ρ_j)
    val_sumcheck: SumcheckProof[Fr]
    inc_val_claim: Fr  # Inc(ρ_a, σ)

    rv_opening: OpeningProof
    inc_opening: OpeningProof
    ra_opening: OpeningProof
    wv_opening: OpeningProof
    inc_val_opening: OpeningProof

    def claims(self) -> list[Fr]:
        return [
            self.rv_claim,
            self.inc_claim,
            self.ra_claim,
            self.val_claim,
            self.wv_claim,
            self.inc_val_claim,
        ]


def read_write_composition(gamma: Fr) -> Polynomial[Fr]:
    """The read-write checking integrand, over the inputs [E, EA, ra, Val, wv]."""
    gamma_2 = gamma * gamma
    gamma_3 = gamma_2 * gamma
    terms = {
        (1, 0, 1, 1, 0): Fr.one(),  # E⋅ra⋅Val
        (1, 0, 1, 0, 0): gamma,  # γ⋅E⋅ra
        (0, 1, 1, 0, 1): gamma_2,  # γ²⋅EA⋅ra⋅wv
        (0, 1, 1, 1, 0): -gamma_2,  # -γ²⋅EA⋅ra⋅Val
        (0, 1, 2, 0, 0): gamma_3,  # γ³⋅EA⋅ra²
        (0, 1, 1, 0, 0): -gamma_3,  # -γ³⋅EA⋅ra
    }
    return Polynomial(Fr, 5, {multidegree: c for multidegree, c in terms.items() if c})


def _start_transcript(
    log_memory_size: int, log_trace_length: int, commitments: list[Commitment]
) -> tuple[Transcript, list[Fr], list[Fr], Fr]:
    transcript = Transcript(PROTOCOL_LABEL)
    transcript.append_int(b"log memory size", log_memory_size)
    transcript.append_int(b"log trace length", log_trace_length)
    for name, commitment in zip((b"ra", b"inc", b"rv", b"wv"), commitments):
        transcript.append(name, bytes(commitment))
    r_cycle = transcript.challenge_vector(b"r_cycle", log_trace_length)
    r_address = transcript.challenge_vector(b"r_address", log_memory_size)
    gamma = transcript.challenge(b"gamma")
    return transcript, r_cycle, r_address, gamma


def _val_table(log_memory_size: int, cycles) -> list[Fr]:
    # Val(a, j) for every (a, j): memory contents before each cycle
    memory = [Fr.zero()] * (1 << log_memory_size)
    table = []
    for cycle in cycles:
        table.extend(memory)
        memory[cycle.address] = cycle.write_value
    return table


def prove(pk: ProverKey, trace: MemoryTrace, scheme: CommitmentScheme = KZG) -> TwistProof:
    """Proves that every read in `trace` returns the most recent prior write to its address (or zero).

    Raises on malformed traces and on traces too large for `pk`. A trace whose reads are wrong still yields a proof,
    but one that does not verify.
    """
    k, t = trace.log_memory_size, trace.log_trace_length
    n = k + t
    if n > pk.num_vars:
        raise UnsupportedSize(f"trace needs {n} variables, key supports {pk.num_vars}")
    cycles = trace.cycles()

    inconsistent = [j for j, cycle in enumerate(cycles) if not cycle.is_consistent]
    if inconsistent:
        logger.warning("reads at timestamps %s disagree with memory; the proof will not verify", inconsistent)

    logger.debug("encoding %d cycles over %d cells", len(cycles), 1 << k)
    ra = MultilinearExtension.from_sparse(Fr, n, {c.address | j << k: Fr.one() for j, c in enumerate(cycles)})
    inc = MultilinearExtension.from_sparse(
        Fr, n, {c.address | j << k: c.write_value - c.previous_value for j, c in enumerate(cycles)}
    )
    rv = MultilinearExtension.from_evaluations(Fr, [c.read_value for c in cycles])
    wv = MultilinearExtension.from_evaluations(Fr, [c.write_value for c in cycles])
    val = MultilinearExtension.from_evaluations(Fr, _val_table(k, cycles))

    logger.debug("committing")
    key, cycle_key = pk.trim(n), pk.trim(t)
    commitments = [
        scheme.commit(key, ra),
        scheme.commit(key, inc),
        scheme.commit(cycle_key, rv),
        scheme.commit(cycle_key, wv),
    ]
    transcript, r_cycle, r_address, gamma = _start_transcript(k, t, commitments)

    rv_claim = rv.evaluate(r_cycle)
    inc_claim = inc.evaluate(r_address + r_cycle)
    transcript.append_scalars(b"initial claims", [rv_claim, inc_claim])

    logger.debug("read-write checking sum-check over %d variables", n)
    e = MultilinearExtension.from_evaluations(Fr, EqualityIndicator(Fr, t).evaluate_over_hypercube(r_cycle))
    ea = EqualityIndicator(Fr, n).evaluate_over_hypercube(r_address + r_cycle)
    multilinears = [
        e.extend_variables(k, low=True).evaluations,
        ea,
        ra.dense_evaluations(),
        val.evaluations,
        wv.extend_variables(k, low=True).evaluations,
    ]
    prover = SumcheckProver(Fr, multilinears, read_write_composition(gamma), READ_WRITE_DEGREE)
    claim = rv_claim + gamma + gamma * gamma * inc_claim
    read_write_sumcheck, rho = prove_sumcheck(prover, claim, transcript, READ_WRITE_LABEL)
    rho_address, rho_cycle = rho[:k], rho[k:]
    _, _, ra_claim, val_claim, wv_claim = prover.final_evaluations()
    transcript.append_scalars(b"read-write claims", [ra_claim, val_claim, wv_claim])

    logger.debug("val evaluation sum-check over %d variables", t)
    inc_at_address = inc
    for r in rho_address:
        inc_at_address = inc_at_address.bind(r)
    lt = LessThanIndicator(Fr, t).evaluate_over_hypercube(rho_cycle)
    val_prover = SumcheckProver(Fr, [inc_at_address.dense_evaluations(), lt], product(Fr, 2), VAL_EVALUATION_DEGREE)
    val_sumcheck, sigma = prove_sumcheck(val_prover, val_claim, transcript, VAL_EVALUATION_LABEL)
    inc_val_claim = val_prover.final_evaluations()[0]
    transcript.append_scalar(b"val evaluation claim", inc_val_claim)

    logger.debug("opening")
    _, rv_opening = scheme.open(cycle_key, rv, r_cycle)
    _, inc_opening = scheme.open(key, inc, r_address + r_cycle)
    _, ra_opening = scheme.open(key, ra, rho)
    _, wv_opening = scheme.open(cycle_key, wv, rho_cycle)
    _, inc_val_opening = scheme.open(key, inc, rho_address + sigma)

    return TwistProof(
        k,
        t,
        *commitments,
        rv_claim=rv_claim,
        inc_claim=inc_claim,
        read_write_sumcheck=read_write_sumcheck,
        ra_claim=ra_claim,
        val_claim=val_claim,
        wv_claim=wv_claim,
        val_sumcheck=val_sumcheck,
        inc_val_claim=inc_val_claim,
        rv_opening=rv_opening,
        inc_opening=inc_opening,
        ra_opening=ra_opening,
        wv_opening=wv_opening,
        inc_val_opening=inc_val_opening,
    )


def _well_formed(vk: VerifierKey, proof: TwistProof) -> bool:
    if not isinstance(proof, TwistProof):
        return False
    k, t = proof.log_memory_size, proof.log_trace_length
    if not isinstance(k, int) or not isinstance(t, int) or k < 0 or t < 0 or k + t > vk.num_vars:
        return False
    if not isinstance(proof.read_write_sumcheck, SumcheckProof) or not isinstance(proof.val_sumcheck, SumcheckProof):
        return False
    if not all(isinstance(c, Commitment) and c.is_well_formed() for c in _commitments(proof)):
        return False
    return all(isinstance(claim, Fr) for claim in proof.claims())


def _commitments(proof: TwistProof) -> list[Commitment]:
    return [proof.ra_commitment, proof.inc_commitment, proof.rv_commitment, proof.wv_commitment]


def verify(vk: VerifierKey, proof: TwistProof, scheme: CommitmentScheme = KZG) -> bool:
    """Accepts iff both sum-checks are consistent and all five openings verify. Never raises."""
    if not _well_formed(vk, proof):
        return False
    k, t = proof.log_memory_size, proof.log_trace_length
    n = k + t
    key, cycle_key = vk.trim(n), vk.trim(t)

    transcript, r_cycle, r_address, gamma = _start_transcript(k, t, _commitments(proof))
    transcript.append_scalars(b"initial claims", [proof.rv_claim, proof.inc_claim])

    claim = proof.rv_claim + gamma + gamma * gamma * proof.inc_claim
    read_write = verify_sumcheck(
        Fr, proof.read_write_sumcheck, claim, n, READ_WRITE_DEGREE, transcript, READ_WRITE_LABEL
    )
    rho = list(read_write.challenges)
    rho_address, rho_cycle = rho[:k], rho[k:]
    transcript.append_scalars(b"read-write claims", [proof.ra_claim, proof.val_claim, proof.wv_claim])
    expected = read_write_composition(gamma).evaluate(
        [
            EqualityIndicator(Fr, t).evaluate_at_point(r_cycle, rho_cycle),
            EqualityIndicator(Fr, n).evaluate_at_point(r_address + r_cycle, rho),
            proof.ra_claim,
            proof.val_claim,
            proof.wv_claim,
        ]
    )

    val_evaluation = verify_sumcheck(
        Fr, proof.val_sumcheck, proof.val_claim, t, VAL_EVALUATION_DEGREE, transcript, VAL_EVALUATION_LABEL
    )
    sigma = list(val_evaluation.challenges)
    transcript.append_scalar(b"val evaluation claim", proof.inc_val_claim)
    val_expected = proof.inc_val_claim * LessThanIndicator(Fr, t).evaluate_at_point(sigma, rho_cycle)

    checks = [
        read_write.accepted,
        read_write.final_claim == expected,
        val_evaluation.accepted,
        val_evaluation.final_claim == val_expected,
        scheme.verify(cycle_key, proof.rv_commitment, r_cycle, proof.rv_claim, proof.rv_opening),
        scheme.verify(key, proof.inc_commitment, r_address + r_cycle, proof.inc_claim, proof.inc_opening),
        scheme.verify(key, proof.ra_commitment, rho, proof.ra_claim, proof.ra_opening),
        scheme.verify(cycle_key, proof.wv_commitment, rho_cycle, proof.wv_claim, proof.wv_opening),
        scheme.verify(key, proof.inc_commitment, rho_address + sigma, proof.inc_val_claim, proof.inc_val_opening),
    ]
    if not all(checks):
        logger.debug("rejected; failed checks %s", [i for i, ok in enumerate(checks) if not ok])
    return all(checks)

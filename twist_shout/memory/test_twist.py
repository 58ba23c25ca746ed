# (C) 2024 Irreducible Inc.

import dataclasses
import logging

import pytest

from twist_shout.errors import DuplicateTimestamp, TraceOutOfBounds, UnsupportedSize
from twist_shout.finite_fields.prime_field import Fr
from twist_shout.pcs.kzg import ProverKey, VerifierKey

from . import twist
from .trace import MemoryOp, MemoryTrace


def simple_trace(read_value: int | None = None) -> MemoryTrace:
    return MemoryTrace(2, 2, [MemoryOp.write(0, 42, 0), MemoryOp.write(1, 100, 1), MemoryOp.read(0, 2, read_value)])


def interleaved_trace(read_values: tuple[int, int, int] = (7, 8, 9)) -> MemoryTrace:
    # writes to one cell at timestamps 0, 2 and 5, each followed by a read
    return MemoryTrace(
        1,
        3,
        [
            MemoryOp.write(1, 7, 0),
            MemoryOp.read(1, 1, read_values[0]),
            MemoryOp.write(1, 8, 2),
            MemoryOp.read(1, 3, read_values[1]),
            MemoryOp.write(1, 9, 5),
            MemoryOp.read(1, 6, read_values[2]),
        ],
    )


def test_completeness(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    proof = twist.prove(prover_key, simple_trace(42))
    assert proof.log_memory_size == 2 and proof.log_trace_length == 2
    assert twist.verify(verifier_key, proof)


def test_completeness_with_builder(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    trace = MemoryTrace(2, 3)
    trace.write(3, 11)
    trace.write(0, 12)
    trace.read(3)
    trace.write(3, 13)
    trace.read(3)
    trace.read(1)
    assert twist.verify(verifier_key, twist.prove(prover_key, trace))


def test_ordering(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    assert twist.verify(verifier_key, twist.prove(prover_key, interleaved_trace()))
    # reading the value written after the read, or the one overwritten before it
    assert not twist.verify(verifier_key, twist.prove(prover_key, interleaved_trace((7, 9, 9))))
    assert not twist.verify(verifier_key, twist.prove(prover_key, interleaved_trace((7, 7, 9))))


def test_wrong_read_rejected(prover_key: ProverKey, verifier_key: VerifierKey, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="twist_shout.memory.twist"):
        proof = twist.prove(prover_key, simple_trace(41))
    assert "disagree with memory" in caplog.text
    assert not twist.verify(verifier_key, proof)


def test_read_of_unwritten_cell(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    trace = MemoryTrace(1, 1, [MemoryOp.write(0, 5, 0), MemoryOp.read(1, 1, 0)])
    assert twist.verify(verifier_key, twist.prove(prover_key, trace))
    trace = MemoryTrace(1, 1, [MemoryOp.write(0, 5, 0), MemoryOp.read(1, 1, 5)])
    assert not twist.verify(verifier_key, twist.prove(prover_key, trace))


@pytest.mark.parametrize(
    "field", ["rv_claim", "inc_claim", "ra_claim", "val_claim", "wv_claim", "inc_val_claim"]
)
def test_tampered_claim_rejected(prover_key: ProverKey, verifier_key: VerifierKey, field: str) -> None:
    proof = twist.prove(prover_key, simple_trace(42))
    tampered = dataclasses.replace(proof, **{field: getattr(proof, field) + 1})
    assert not twist.verify(verifier_key, tampered)


def test_tampered_structure_rejected(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    proof = twist.prove(prover_key, simple_trace(42))
    swapped = dataclasses.replace(proof, rv_commitment=proof.wv_commitment)
    assert not twist.verify(verifier_key, swapped)
    truncated = dataclasses.replace(
        proof, val_sumcheck=dataclasses.replace(proof.val_sumcheck, round_polynomials=())
    )
    assert not twist.verify(verifier_key, truncated)
    resized = dataclasses.replace(proof, log_memory_size=1)
    assert not twist.verify(verifier_key, resized)
    too_large = dataclasses.replace(proof, log_trace_length=verifier_key.num_vars)
    assert not twist.verify(verifier_key, too_large)
    assert not twist.verify(verifier_key, None)
    assert not twist.verify(verifier_key, dataclasses.replace(proof, rv_claim=1))


def test_proof_for_other_trace_rejected(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    first = twist.prove(prover_key, simple_trace(42))
    second = twist.prove(prover_key, MemoryTrace(1, 2, [MemoryOp.write(0, 43, 0), MemoryOp.read(0, 1, 43)]))
    mixed = dataclasses.replace(second, rv_commitment=first.rv_commitment)
    assert not twist.verify(verifier_key, mixed)


def test_unsupported_size(prover_key: ProverKey) -> None:
    with pytest.raises(UnsupportedSize):
        twist.prove(prover_key, MemoryTrace(3, prover_key.num_vars - 2))


def test_malformed_trace(prover_key: ProverKey) -> None:
    with pytest.raises(DuplicateTimestamp):
        twist.prove(prover_key, MemoryTrace(1, 1, [MemoryOp.write(0, 1, 0), MemoryOp.read(0, 0)]))


def test_composition_vanishes_off_constraints() -> None:
    # with E = EA = 1, ra = 1 and Val = wv the integrand reduces to Val + γ
    gamma = Fr.random()
    composition = twist.read_write_composition(gamma)
    value = Fr.random()
    assert composition.evaluate([Fr.one(), Fr.one(), Fr.one(), value, value]) == value + gamma


def test_trace_out_of_bounds(prover_key: ProverKey) -> None:
    with pytest.raises(TraceOutOfBounds):
        twist.prove(prover_key, MemoryTrace(2, 2, [MemoryOp.write(4, 1, 0)]))
    with pytest.raises(TraceOutOfBounds):
        twist.prove(prover_key, MemoryTrace(2, 2, [MemoryOp.read(0, 4)]))


def test_builder_after_explicit_operations(prover_key: ProverKey, verifier_key: VerifierKey) -> None:
    trace = MemoryTrace(2, 2, [MemoryOp.write(0, 42, 0), MemoryOp.write(1, 100, 1)])
    assert trace.read(0) == Fr(42)
    assert twist.verify(verifier_key, twist.prove(prover_key, trace))

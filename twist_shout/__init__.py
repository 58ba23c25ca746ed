# (C) 2024 Irreducible Inc.

"""Twist and Shout memory checking over BN254, with multilinear KZG commitments.

    pk, vk = setup(4)
    trace = MemoryTrace(log_memory_size=2, log_trace_length=2)
    trace.write(0, 42)
    trace.read(0)
    assert twist.verify(vk, twist.prove(pk, trace))
"""

from .errors import (
    ContractViolation,
    DegreeViolation,
    DuplicateTimestamp,
    IndexOutOfBounds,
    SetupError,
    ShapeMismatch,
    SizeMismatch,
    TraceOutOfBounds,
    TwistShoutError,
    UnsupportedSize,
)
from .finite_fields.prime_field import Fr
from .memory import shout, twist
from .memory.shout import ShoutProof
from .memory.trace import LookupTable, MemoryOp, MemoryTrace, OpKind
from .memory.twist import TwistProof
from .pcs.kzg import KZG, Commitment, OpeningProof, ProverKey, VerifierKey, setup
from .polynomials.multilinear import MultilinearExtension, Representation

__all__ = [
    "KZG",
    "Commitment",
    "ContractViolation",
    "DegreeViolation",
    "DuplicateTimestamp",
    "Fr",
    "IndexOutOfBounds",
    "LookupTable",
    "MemoryOp",
    "MemoryTrace",
    "MultilinearExtension",
    "OpKind",
    "OpeningProof",
    "ProverKey",
    "Representation",
    "SetupError",
    "ShapeMismatch",
    "ShoutProof",
    "SizeMismatch",
    "TraceOutOfBounds",
    "TwistProof",
    "TwistShoutError",
    "UnsupportedSize",
    "VerifierKey",
    "setup",
    "shout",
    "twist",
]

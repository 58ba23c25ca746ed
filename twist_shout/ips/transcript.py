# (C) 2024 Irreducible Inc.

from __future__ import annotations

import hashlib
from typing import Iterable

from ..finite_fields.prime_field import Fr
from ..pcs import groups

STATE_LEN = 32
CHALLENGE_LEN = 64  # wide enough that reduction mod r is statistically uniform


class Transcript:
    """A Fiat-Shamir transcript over a chained BLAKE2b state.

    Every append and every challenge replaces the state with a hash of (state, tag, label, length, payload), so the
    order and framing of all messages determine every later challenge. Prover and verifier must perform the same
    sequence of calls; there is no way to rewind.
    """

    def __init__(self, label: bytes) -> None:
        self.state = hashlib.blake2b(b"twist-shout transcript" + label, digest_size=STATE_LEN).digest()

    def _absorb(self, tag: bytes, label: bytes, payload: bytes) -> None:
        h = hashlib.blake2b(digest_size=STATE_LEN)
        h.update(self.state)
        h.update(tag)
        for item in (label, payload):
            h.update(len(item).to_bytes(8, byteorder="little"))
            h.update(item)
        self.state = h.digest()

    def append(self, label: bytes, data: bytes) -> None:
        self._absorb(b"A", label, bytes(data))

    def append_int(self, label: bytes, x: int) -> None:
        assert x >= 0
        self.append(label, x.to_bytes(8, byteorder="little"))

    def append_scalar(self, label: bytes, scalar: Fr) -> None:
        self.append(label, bytes(scalar))

    def append_scalars(self, label: bytes, scalars: Iterable[Fr]) -> None:
        self.append(label, b"".join(bytes(scalar) for scalar in scalars))

    def append_point(self, label: bytes, point: groups.G1Point) -> None:
        self.append(label, groups.g1_to_bytes(point))

    def challenge(self, label: bytes) -> Fr:
        digest = hashlib.blake2b(self.state + b"C" + label, digest_size=CHALLENGE_LEN).digest()
        result = Fr.from_bytes_mod_order(digest)
        # the drawn value is absorbed, so two consecutive draws under the same label differ.
        self._absorb(b"C", label, bytes(result))
        return result

    def challenge_vector(self, label: bytes, n: int) -> list[Fr]:
        return [self.challenge(label) for _ in range(n)]

    def fork(self) -> Transcript:
        other = object.__new__(Transcript)
        other.state = self.state
        return other

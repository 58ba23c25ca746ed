# (C) 2024 Irreducible Inc.

from typing import Any, Protocol, TypeVar

from ..finite_fields.prime_field import Fr
from ..polynomials.multilinear import MultilinearExtension

K = TypeVar("K", bound="SizedKey")


class SizedKey(Protocol):
    num_vars: int

    def trim(self: K, num_vars: int) -> K: ...


class CommitmentScheme(Protocol):
    """What the memory-checking protocols need from a multilinear polynomial commitment.

    Keys are sized: `commit` and `open` accept only extensions in exactly `key.num_vars` variables, and callers
    obtain smaller keys through `trim`. `verify` answers with a boolean and never raises.
    """

    def commit(self, key: SizedKey, mle: MultilinearExtension[Fr]) -> Any: ...

    def open(self, key: SizedKey, mle: MultilinearExtension[Fr], point: list[Fr]) -> tuple[Fr, Any]: ...

    def verify(self, key: SizedKey, commitment: Any, point: list[Fr], value: Fr, proof: Any) -> bool: ...

# (C) 2024 Irreducible Inc.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import numpy as np

from twist_shout.errors import DuplicateTimestamp, IndexOutOfBounds, ShapeMismatch, TraceOutOfBounds
from twist_shout.finite_fields.prime_field import Fr
from twist_shout.utils.utils import log2_ceil, pad_to_power_of_two


class OpKind(Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class MemoryOp:
    """One access to memory at a given timestamp.

    A READ carries the value the program claims it observed, or None to mean "whatever memory holds". A WRITE carries
    the value stored.
    """

    kind: OpKind
    address: int
    timestamp: int
    value: Fr | None = None

    def __post_init__(self) -> None:
        if isinstance(self.value, int):
            object.__setattr__(self, "value", Fr.from_int(self.value))
        if self.kind is OpKind.WRITE and self.value is None:
            raise ShapeMismatch(f"write at timestamp {self.timestamp} has no value")

    @classmethod
    def read(cls, address: int, timestamp: int, value: Fr | int | None = None) -> MemoryOp:
        return cls(OpKind.READ, address, timestamp, value)

    @classmethod
    def write(cls, address: int, value: Fr | int, timestamp: int) -> MemoryOp:
        return cls(OpKind.WRITE, address, timestamp, value)


@dataclass(frozen=True)
class Cycle:
    """What happens to memory during one timestamp, with every cycle touching exactly one cell."""

    address: int
    read_value: Fr  # the value the trace claims was read
    previous_value: Fr  # the cell's contents before the cycle
    write_value: Fr  # the cell's contents after the cycle

    @property
    def is_consistent(self) -> bool:
        return self.read_value == self.previous_value


class MemoryTrace:
    """An ordered log of reads and writes against 2^k cells of zero-initialized memory, over 2^t timestamps.

    Operations may be listed explicitly, or appended through `write` and `read`, which use the next free timestamp
    and track memory so that reads return the most recent prior write.
    """

    def __init__(self, log_memory_size: int, log_trace_length: int, operations: Iterable[MemoryOp] = ()) -> None:
        assert log_memory_size >= 0 and log_trace_length >= 0
        self.log_memory_size = log_memory_size
        self.log_trace_length = log_trace_length
        self.operations = list(operations)
        self._memory: dict[int, Fr] = {}
        for op in sorted(self.operations, key=lambda op: op.timestamp):
            if op.kind is OpKind.WRITE:
                self._memory[op.address] = op.value
        self._next_timestamp = max((op.timestamp + 1 for op in self.operations), default=0)

    @property
    def memory_size(self) -> int:
        return 1 << self.log_memory_size

    @property
    def trace_length(self) -> int:
        return 1 << self.log_trace_length

    def _check_access(self, address: int) -> None:
        if not 0 <= address < self.memory_size:
            raise TraceOutOfBounds(f"address {address} outside memory of size {self.memory_size}")
        if self._next_timestamp >= self.trace_length:
            raise TraceOutOfBounds(f"trace already holds {self.trace_length} timestamps")

    def write(self, address: int, value: Fr | int) -> None:
        self._check_access(address)
        op = MemoryOp.write(address, value, self._next_timestamp)
        self.operations.append(op)
        self._memory[address] = op.value
        self._next_timestamp += 1

    def read(self, address: int) -> Fr:
        self._check_access(address)
        value = self._memory.get(address, Fr.zero())
        self.operations.append(MemoryOp.read(address, self._next_timestamp, value))
        self._next_timestamp += 1
        return value

    def validate(self) -> None:
        """Raises if any operation falls outside the declared shape or two operations share a timestamp."""
        addresses = np.asarray([op.address for op in self.operations], dtype=object)
        timestamps = np.asarray([op.timestamp for op in self.operations], dtype=object)
        bad = np.flatnonzero(((addresses < 0) | (addresses >= self.memory_size)).astype(bool))
        if bad.size:
            op = self.operations[bad[0]]
            raise TraceOutOfBounds(f"address {op.address} outside memory of size {self.memory_size}")
        bad = np.flatnonzero(((timestamps < 0) | (timestamps >= self.trace_length)).astype(bool))
        if bad.size:
            op = self.operations[bad[0]]
            raise TraceOutOfBounds(f"timestamp {op.timestamp} outside trace of length {self.trace_length}")
        if timestamps.size:
            values, counts = np.unique(timestamps, return_counts=True)
            duplicates = values[counts > 1]
            if duplicates.size:
                raise DuplicateTimestamp(f"timestamp {duplicates[0]} is used by more than one operation")

    def cycles(self) -> list[Cycle]:
        """Executes the trace, producing one cycle per timestamp.

        Timestamps without an operation become no-ops that read cell 0 and write back its contents.
        """
        self.validate()
        by_timestamp = {op.timestamp: op for op in self.operations}
        memory: dict[int, Fr] = {}
        result = []
        for j in range(self.trace_length):
            op = by_timestamp.get(j)
            address = 0 if op is None else op.address
            previous = memory.get(address, Fr.zero())
            if op is None:
                result.append(Cycle(address, previous, previous, previous))
            elif op.kind is OpKind.WRITE:
                memory[address] = op.value
                result.append(Cycle(address, previous, previous, op.value))
            else:
                claimed = previous if op.value is None else op.value
                result.append(Cycle(address, claimed, previous, previous))
        return result


class LookupTable:
    """A read-only table, zero-padded to 2^k entries, together with the lookups performed against it."""

    def __init__(
        self, entries: Iterable[Fr | int], indices: Iterable[int] = (), values: Iterable[Fr | int] | None = None
    ) -> None:
        entries = [Fr.from_int(e) if isinstance(e, int) else e for e in entries]
        self.log_size = log2_ceil(len(entries))
        self.entries = pad_to_power_of_two(entries, Fr.zero())
        self.indices = list(indices)
        self.values = None if values is None else [Fr.from_int(v) if isinstance(v, int) else v for v in values]
        if self.values is not None and len(self.values) != len(self.indices):
            raise ShapeMismatch(f"{len(self.values)} claimed values for {len(self.indices)} lookups")

    @property
    def size(self) -> int:
        return len(self.entries)

    @property
    def log_num_lookups(self) -> int:
        return log2_ceil(len(self.indices))

    def lookup(self, index: int) -> Fr:
        if not 0 <= index < self.size:
            raise IndexOutOfBounds(f"lookup index {index} outside table of size {self.size}")
        value = self.entries[index]
        self.indices.append(index)
        if self.values is not None:
            self.values.append(value)
        return value

    def validate(self) -> None:
        indices = np.asarray(self.indices, dtype=object)
        bad = np.flatnonzero(((indices < 0) | (indices >= self.size)).astype(bool))
        if bad.size:
            raise IndexOutOfBounds(f"lookup index {self.indices[bad[0]]} outside table of size {self.size}")

    def claimed_values(self) -> list[Fr]:
        if self.values is None:
            return [self.entries[i] for i in self.indices]
        return list(self.values)

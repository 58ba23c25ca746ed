# (C) 2024 Irreducible Inc.

"""Exceptions raised for caller contract violations and unsupported setups.

Cryptographic rejection is never signalled through this module: verifiers answer ``False``.
"""


class TwistShoutError(Exception):
    """Base class of every error raised by this package."""


class ContractViolation(TwistShoutError, ValueError):
    """The caller handed in something malformed; raised immediately, nothing is clamped."""


class ShapeMismatch(ContractViolation):
    pass


class SizeMismatch(ContractViolation):
    """A polynomial's variable count disagrees with the commitment key it is used with."""


class IndexOutOfBounds(ContractViolation):
    pass


class TraceOutOfBounds(ContractViolation):
    """A memory operation addresses a cell, or happens at a time, outside the declared trace shape."""


class DuplicateTimestamp(ContractViolation):
    pass


class DegreeViolation(ContractViolation):
    """A sum-check composition has a larger degree than the bound the caller declared for it."""


class SetupError(TwistShoutError, ValueError):
    pass


class UnsupportedSize(SetupError):
    pass

# (C) 2024 Irreducible Inc.

import functools
import pathlib
import types
from typing import Callable

import pytest

from twist_shout.pcs.kzg import ProverKey, VerifierKey, setup

# large enough for every trace and table in the test suite, small enough that deriving it stays fast
TEST_KEY_VARIABLES = 5


@pytest.fixture(scope="session")
def keys() -> tuple[ProverKey, VerifierKey]:
    return setup(TEST_KEY_VARIABLES)


@pytest.fixture(scope="session")
def prover_key(keys: tuple[ProverKey, VerifierKey]) -> ProverKey:
    return keys[0]


@pytest.fixture(scope="session")
def verifier_key(keys: tuple[ProverKey, VerifierKey]) -> VerifierKey:
    return keys[1]


def pytest_pycollect_makemodule(module_path: pathlib.Path, parent) -> pytest.Module:
    """Collects modules as pytest does, then expands @pytest.mark.parametrize_hypothesis."""
    mod: pytest.Module = pytest.Module.from_parent(parent, path=module_path)
    expand_parametrize_hypothesis(mod)
    return mod


def expand_parametrize_hypothesis(mod: pytest.Module) -> None:
    """Replaces each test marked @pytest.mark.parametrize_hypothesis(name=(decorators...), ...) by one copy per
    keyword, named `<test>_<name>`, wrapped in that keyword's hypothesis decorators and marked @pytest.mark.<name>.

    This lets one property run as a single random example by default and exhaustively under `-m slow`.
    """
    namespace = getattr(mod.obj, "__dict__", {})
    marked = {
        name: obj
        for name, obj in namespace.items()
        if callable(obj) and any(mark.name == "parametrize_hypothesis" for mark in getattr(obj, "pytestmark", []))
    }
    for name, test_func in marked.items():
        delattr(mod.obj, name)
        mark = next(m for m in test_func.pytestmark if m.name == "parametrize_hypothesis")
        if mark.args:
            raise ValueError(f"@pytest.mark.parametrize_hypothesis on '{mod.name}.{name}' takes keyword arguments only")
        for variant, decorators in mark.kwargs.items():
            if not isinstance(decorators, (list, tuple)) or not all(callable(d) for d in decorators):
                raise ValueError(
                    f"@pytest.mark.parametrize_hypothesis on '{mod.name}.{name}': "
                    f"'{variant}' must be a list of decorators"
                )
            variant_func = copy_with_decorators(test_func, f"{name}_{variant}", decorators)
            setattr(mod.obj, f"{name}_{variant}", getattr(pytest.mark, variant)(variant_func))


def copy_with_decorators(test_func: Callable, new_name: str, decorators: list | tuple) -> Callable:
    copy = types.FunctionType(
        test_func.__code__, test_func.__globals__, new_name, test_func.__defaults__, test_func.__closure__
    )
    copy = functools.update_wrapper(copy, test_func)
    # update_wrapper copies __dict__, and with it the marks of the original
    copy.pytestmark = [m for m in test_func.pytestmark if m.name != "parametrize_hypothesis"]
    copy.__name__ = copy.__qualname__ = new_name
    for decorator in decorators:
        copy = decorator(copy)
    return copy

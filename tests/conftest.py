"""
Pytest configuration and shared fixtures for jsbind tests.

Generated bindings are executed in-process against a fresh
``MemoryBackend`` for every test.
"""

import itertools
import logging
import sys
import types

import pytest

from jsbind import generate_bindings
from jsbind.logging_config import PACKAGE_LOGGER
from jsbind.runtime import MemoryBackend, use_backend

_module_ids = itertools.count()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo ``setup_logging`` calls made by CLI tests."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def js():
    """Install a fresh in-memory JS world for the duration of a test."""
    backend = MemoryBackend()
    previous = use_backend(backend)
    yield backend
    use_backend(previous)


def load_generated(code, monkeypatch, name=None):
    """Execute generated code as a real module."""
    name = name or f"jsbind_generated_{next(_module_ids)}"
    module = types.ModuleType(name)
    # dataclasses resolves string annotations through sys.modules
    monkeypatch.setitem(sys.modules, name, module)
    exec(compile(code, f"<{name}>", "exec"), module.__dict__)
    return module


@pytest.fixture
def bind(js, monkeypatch):
    """Generate bindings for a signature and import them."""

    def _bind(source, **config):
        result = generate_bindings(source, config or None, filename="test.mli")
        assert result.success, result.error_message
        module = load_generated(result.code, monkeypatch)
        return module

    return _bind


@pytest.fixture
def generate():
    """Generate bindings and return the raw ``GenerationResult``."""

    def _generate(source, **config):
        return generate_bindings(source, config or None, filename="test.mli")

    return _generate


@pytest.fixture
def element_sig():
    return "type element = private Ojs.t\n"

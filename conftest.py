# conftest.py
import logging

import matplotlib
import pytest

from pygdt.config import AssemblyConfig, set_config


@pytest.fixture(autouse=True)
def mpl_test_backend():
    """Switch to a non-interactive backend for all tests."""
    matplotlib.use('Agg')


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the built-in defaults, independent of PYGDT_* variables."""
    previous = set_config(AssemblyConfig())
    yield
    set_config(previous)


@pytest.fixture
def debug_log(caplog):
    caplog.set_level(logging.DEBUG, logger="pygdt")
    return caplog

"""
Pytest configuration and fixtures for columnml tests.

This module provides:
- Isolation of the configuration singleton and the shared thread pool
- A fixture for running the parallel code paths on small columns
"""

import os
import sys

import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from columnml.components.config import ConfigManager
from columnml.components.thread_pool import ThreadGranularity


ENV_VARS = (
    'COLUMNML_THREAD_LEVEL',
    'COLUMNML_PARALLEL_MIN_SIZE',
    'COLUMNML_SANITY_CHECKS',
    'LOG_LEVEL',
)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Start every test from default configuration and no thread pool."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    ConfigManager.reset()
    ThreadGranularity.reset()
    yield
    ThreadGranularity.reset()
    ConfigManager.reset()


@pytest.fixture
def parallel():
    """Shared pool with 4 threads, admitted for any column length."""
    ConfigManager.get_config({'threading': {'min-size': 1}})
    ThreadGranularity.set_thread_level(4)
    return ThreadGranularity.get_pool()

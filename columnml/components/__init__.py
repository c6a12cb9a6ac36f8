"""
System components for columnml.

This module provides the configuration layer and the shared thread pool.
"""

from columnml.components.config import Config, ConfigManager
from columnml.components.thread_pool import ThreadPool, ThreadGranularity, parallel_for

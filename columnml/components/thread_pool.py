"""
Shared thread pool for columnml.

Visitors never start their own threads. Elementwise stages that are large
enough split their work into contiguous index ranges and hand them to one
shared pool, then block until every range is done.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from columnml.components.config import ConfigManager
from columnml.utils.general import split_range

# Set up logging
logger = logging.getLogger(__name__)

RangeFunc = Callable[[int, int], None]


class ThreadPool:
    """
    Fixed-size pool running index-range work items.
    """

    def __init__(self, thread_count: int):
        """
        Initialize the pool.

        Args:
            thread_count: Number of worker threads (at least 1)
        """
        if thread_count < 1:
            raise ValueError(f"thread_count must be positive, got {thread_count}")

        self.thread_count = thread_count
        self._executor = ThreadPoolExecutor(max_workers=thread_count,
                                            thread_name_prefix='columnml')

    def parallel_loop(self, begin: int, end: int, func: RangeFunc) -> List[Future]:
        """
        Submit func over contiguous slices of [begin, end).

        Args:
            begin: First position
            end: One past the last position
            func: Callable taking (range_begin, range_end)

        Returns:
            One future per submitted range, in range order
        """
        return [self._executor.submit(func, b, e)
                for b, e in split_range(begin, end, self.thread_count)]

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the workers."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'ThreadPool':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return f"ThreadPool(thread_count={self.thread_count})"


class ThreadGranularity:
    """
    Global thread level and the pool that goes with it.
    """

    _lock = threading.RLock()
    _thread_level: Optional[int] = None
    _pool: Optional[ThreadPool] = None

    @classmethod
    def set_thread_level(cls, level: int) -> None:
        """
        Set the global thread level, rebuilding the shared pool.

        Args:
            level: Number of threads; zero or less turns the pool off
        """
        with cls._lock:
            if cls._pool is not None:
                cls._pool.shutdown()
                cls._pool = None

            cls._thread_level = max(0, int(level))
            if cls._thread_level > 0:
                cls._pool = ThreadPool(cls._thread_level)

            logger.debug(f"Thread level set to {cls._thread_level}")

    @classmethod
    def get_thread_level(cls) -> int:
        """Current global thread level, read from the config on first use."""
        with cls._lock:
            if cls._thread_level is None:
                cls.set_thread_level(ConfigManager.get_config().get('threading.level', 0))
            return cls._thread_level

    @classmethod
    def get_pool(cls) -> Optional[ThreadPool]:
        """The shared pool, or None when the thread level is zero."""
        with cls._lock:
            cls.get_thread_level()
            return cls._pool

    @classmethod
    def reset(cls) -> None:
        """Shut the shared pool down and forget the thread level."""
        with cls._lock:
            if cls._pool is not None:
                cls._pool.shutdown()
            cls._pool = None
            cls._thread_level = None


def parallel_for(begin: int,
                 end: int,
                 func: RangeFunc,
                 pool: Optional[ThreadPool] = None,
                 thread_level: Optional[int] = None,
                 min_size: Optional[int] = None) -> None:
    """
    Run func over [begin, end), in parallel when the gates admit it.

    The range goes to the pool only when the thread level reaches the
    configured minimum level and the range is at least min_size long.
    Otherwise func(begin, end) runs once on the calling thread. Either way
    this returns only after all of the work is done.

    Args:
        begin: First position
        end: One past the last position
        func: Callable taking (range_begin, range_end)
        pool: Pool to use; defaults to the shared pool
        thread_level: Thread level to test; defaults to the injected pool's
            thread count, or the global level for the shared pool
        min_size: Minimum range length; defaults to the configured value
    """
    config = ConfigManager.get_config()

    if pool is None:
        pool = ThreadGranularity.get_pool()
        if thread_level is None:
            thread_level = ThreadGranularity.get_thread_level()
    elif thread_level is None:
        thread_level = pool.thread_count

    if min_size is None:
        min_size = config.get('threading.min-size', 150000)

    admitted = (pool is not None
                and thread_level >= config.get('threading.min-level', 3)
                and end - begin >= min_size)

    if not admitted:
        if end > begin:
            func(begin, end)
        return

    futures = pool.parallel_loop(begin, end, func)

    # Wait on every range before raising
    errors = []
    for fut in futures:
        exc = fut.exception()
        if exc is not None:
            errors.append(exc)

    if errors:
        raise errors[0]

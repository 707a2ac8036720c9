"""Performance profiling utilities for cellsheaf.

Decorators and context managers for monitoring execution time and process
memory around Laplacian assembly and the nearest-section solve.
"""

import functools
import logging
import os
import time
from typing import Callable, Optional

import psutil

from .config import Config
from .logging import get_logger, log_execution_time


def profile_time(
    time_threshold_seconds: float = Config.performance.DEFAULT_TIME_THRESHOLD,
    log_results: bool = True
) -> Callable:
    """Decorator to profile execution time of a function.

    Timings are logged at DEBUG level on the ``cellsheaf.profiling`` logger;
    a warning is emitted when the threshold is exceeded.

    Args:
        time_threshold_seconds: Threshold for execution time warnings
        log_results: Whether to log profiling results
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(f"cellsheaf.profiling.{func.__name__}")

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                execution_time = time.perf_counter() - start_time
                logger.error(f"Error in {func.__name__} after {execution_time:.4f}s: {e}")
                raise

            execution_time = time.perf_counter() - start_time
            if log_results:
                log_execution_time(logger, execution_time, func.__qualname__, level=logging.DEBUG)
            if execution_time > time_threshold_seconds:
                logger.warning(
                    f"{func.__name__} exceeded time threshold: "
                    f"{execution_time:.2f}s > {time_threshold_seconds:.2f}s"
                )
            return result

        return wrapper
    return decorator


def get_memory_usage_mb() -> float:
    """Resident set size of the current process in MB."""
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


class MemoryMonitor:
    """Context manager reporting the RSS delta of a block of work.

    Example:
        >>> with MemoryMonitor("laplacian") as monitor:
        ...     L = sheaf.laplacian()
        >>> monitor.delta_mb
    """

    def __init__(self, name: str = "operation",
                 threshold_mb: float = Config.performance.DEFAULT_MEMORY_THRESHOLD_MB):
        self.name = name
        self.threshold_mb = threshold_mb
        self.start_memory: Optional[float] = None
        self.delta_mb: float = 0.0
        self.logger = get_logger("cellsheaf.profiling")

    def __enter__(self):
        self.start_memory = get_memory_usage_mb()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.delta_mb = self.check_memory()
        self.logger.debug(f"{self.name} memory delta: {self.delta_mb:.2f}MB")
        if self.delta_mb > self.threshold_mb:
            self.logger.warning(
                f"{self.name} exceeded memory threshold: "
                f"{self.delta_mb:.2f}MB > {self.threshold_mb:.2f}MB"
            )
        return False

    def check_memory(self) -> float:
        """Memory growth in MB since the context was entered."""
        if self.start_memory is None:
            return 0.0
        return get_memory_usage_mb() - self.start_memory


def profile_memory(
    memory_threshold_mb: float = Config.performance.DEFAULT_MEMORY_THRESHOLD_MB
) -> Callable:
    """Decorator to report the RSS delta of a function through MemoryMonitor.

    Example:
        @profile_memory(memory_threshold_mb=500.0)
        def assemble(sheaf):
            return sheaf.laplacian()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with MemoryMonitor(func.__qualname__, threshold_mb=memory_threshold_mb):
                return func(*args, **kwargs)

        return wrapper
    return decorator

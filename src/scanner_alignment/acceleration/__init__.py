"""
Acceleration Module

Process-pool execution of independent scanner-pair trials.
"""

from .parallel_executor import ParallelExecutor

__all__ = [
    "ParallelExecutor",
]

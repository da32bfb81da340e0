"""
Parallel execution infrastructure for scanner-pair trials.

Provides ParallelExecutor for distributing independent work items (typically
PairTrial objects) across multiple CPU cores using multiprocessing.
"""

from __future__ import annotations

import time
from multiprocessing import Pool, cpu_count
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..utils.logging import setup_logger

logger = setup_logger(__name__)


def _worker_wrapper(args: Tuple[int, Any, Callable, Dict[str, Any]]) -> Tuple[int, Any, Optional[str]]:
    """
    Worker wrapper function for parallel item processing.

    Must be at module level for pickling.

    Args:
        args: Tuple of (item_index, item, worker_fn, worker_kwargs)

    Returns:
        Tuple of (item_index, result, error_message)
    """
    idx, item, worker_fn, worker_kwargs = args
    try:
        result = worker_fn(item, **worker_kwargs)
        return (idx, result, None)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {str(e)}"
        logger.error(f"Worker error on item {idx}: {error_msg}")
        return (idx, None, error_msg)


class ParallelExecutor:
    """
    Order-preserving parallel map over independent work items.

    Falls back to in-process sequential execution when there is a single
    worker or a single item, avoiding pool start-up cost.

    Example:
        executor = ParallelExecutor(n_workers=4)
        results = executor.map(
            trials,
            worker_fn=evaluate_pair_trial,
            worker_kwargs={"aligner": PairAligner(min_overlap=12)}
        )
    """

    def __init__(self, n_workers: Optional[int] = None):
        """
        Initialize parallel executor.

        Args:
            n_workers: Number of worker processes. If None, uses cpu_count - 1
                to leave one core for coordination. Minimum is 1.
        """
        if n_workers is None:
            n_workers = max(1, cpu_count() - 1)
        else:
            n_workers = max(1, int(n_workers))

        self.n_workers = n_workers

        logger.debug(
            f"Initialized ParallelExecutor with {self.n_workers} workers "
            f"(total CPUs: {cpu_count()})"
        )

    def map(
        self,
        items: List[Any],
        worker_fn: Callable,
        worker_kwargs: Optional[Dict[str, Any]] = None,
    ) -> List[Any]:
        """
        Map a worker function over items, returning results in input order.

        Args:
            items: Work items. Must be picklable when more than one worker is used.
            worker_fn: Module-level function with signature
                worker_fn(item, **worker_kwargs) -> result
            worker_kwargs: Fixed keyword arguments passed to each call

        Returns:
            List of results in the same order as ``items``

        Raises:
            RuntimeError: If any worker call fails
        """
        worker_kwargs = worker_kwargs or {}
        n_items = len(items)

        if n_items == 0:
            return []

        start_time = time.time()

        if self.n_workers == 1 or n_items == 1:
            results = []
            for i, item in enumerate(items):
                try:
                    results.append(worker_fn(item, **worker_kwargs))
                except Exception as e:
                    logger.error(f"Error processing item {i}: {e}", exc_info=True)
                    raise RuntimeError(f"Item processing failed: {e}") from e
            logger.debug(f"Sequential map complete: {n_items} items in {time.time() - start_time:.2f}s")
            return results

        results = self._parallel_map(items, worker_fn, worker_kwargs)
        logger.debug(
            f"Parallel map complete: {n_items} items with {self.n_workers} workers "
            f"in {time.time() - start_time:.2f}s"
        )
        return results

    def _parallel_map(
        self,
        items: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
    ) -> List[Any]:
        """
        Execute the map using multiprocessing.Pool.

        Uses imap_unordered for responsiveness, then reorders results to match
        input order.
        """
        n_items = len(items)
        worker_args = [(i, item, worker_fn, worker_kwargs) for i, item in enumerate(items)]

        results_dict: Dict[int, Any] = {}
        errors = []
        with Pool(processes=min(self.n_workers, n_items)) as pool:
            for idx, result, error in pool.imap_unordered(_worker_wrapper, worker_args):
                if error:
                    errors.append((idx, error))
                else:
                    results_dict[idx] = result

        if errors:
            error_msg = f"{len(errors)} items failed out of {n_items}"
            logger.error(error_msg)
            for idx, error in errors[:5]:  # Log first 5 errors
                logger.error(f"  Item {idx}: {error}")
            if len(errors) > 5:
                logger.error(f"  ... and {len(errors) - 5} more errors")
            raise RuntimeError(error_msg)

        return [results_dict[i] for i in range(n_items)]

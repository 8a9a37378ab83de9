"""
Parallel execution infrastructure for per-scanner and per-pair work.

Provides ParallelExecutor for distributing independent, CPU-bound tasks
(fingerprint construction, scanner pair matching) across multiple CPU cores
using multiprocessing.
"""

from __future__ import annotations

import logging
import time
from multiprocessing import Pool, cpu_count
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..registration.errors import RegistrationError

logger = logging.getLogger(__name__)


def _worker_wrapper(args: Tuple[int, Any, Callable, Dict[str, Any]]) -> Tuple[int, Any, Optional[BaseException]]:
    """
    Worker wrapper function for parallel item processing.

    Must be at module level for pickling.

    Args:
        args: Tuple of (item_index, item, worker_fn, worker_kwargs)

    Returns:
        Tuple of (item_index, result, error)
    """
    idx, item, worker_fn, worker_kwargs = args
    try:
        result = worker_fn(item, **worker_kwargs)
        return (idx, result, None)
    except Exception as e:
        logger.error(f"Worker error on item {idx}: {type(e).__name__}: {e}")
        return (idx, None, e)


class ParallelExecutor:
    """
    Parallel executor for independent registration tasks.

    Manages a worker pool, distributes items to workers, and collects results
    while maintaining input order. Fatal registration errors raised by a
    worker are re-raised unchanged in the calling process.

    Example:
        with ParallelExecutor(n_workers=4) as executor:
            fingerprints = executor.map_items(
                items=scanners,
                worker_fn=build_fingerprint,
                worker_kwargs={},
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
        self._pool = None
        self._depth = 0

        logger.info(
            f"Initialized ParallelExecutor with {self.n_workers} workers "
            f"(total CPUs: {cpu_count()})"
        )

    def __enter__(self) -> "ParallelExecutor":
        """Keep one worker pool alive until the outermost `with` block exits."""
        if self._depth == 0 and self.n_workers > 1:
            self._pool = Pool(processes=self.n_workers)
            logger.debug(f"Started persistent pool with {self.n_workers} workers")
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._depth -= 1
        if self._depth == 0 and self._pool is not None:
            if exc_type is None:
                self._pool.close()
            else:
                self._pool.terminate()
            self._pool.join()
            self._pool = None
        return False

    def map_items(
        self,
        items: List[Any],
        worker_fn: Callable,
        worker_kwargs: Optional[Dict[str, Any]] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Any]:
        """
        Map worker function over items in parallel.

        Args:
            items: List of items to process
            worker_fn: Function to apply to each item. Must be picklable and
                have signature: worker_fn(item, **worker_kwargs) -> result
            worker_kwargs: Fixed keyword arguments passed to each worker call
            progress_callback: Optional callback called after each item
                completes. Signature: callback(completed_count, total_count)

        Returns:
            List of results in same order as input items

        Raises:
            RegistrationError: If a worker hit a fatal registration condition
            RuntimeError: If any worker failed for another reason
        """
        worker_kwargs = worker_kwargs or {}
        n_items = len(items)

        if n_items == 0:
            return []

        start_time = time.time()

        # If only 1 worker or 1 item, use sequential processing (no pool overhead)
        if self.n_workers == 1 or n_items == 1:
            results = []
            for i, item in enumerate(items):
                try:
                    results.append(worker_fn(item, **worker_kwargs))
                except RegistrationError:
                    raise
                except Exception as e:
                    logger.error(f"Error processing item {i}: {e}", exc_info=True)
                    raise RuntimeError(f"Item processing failed: {e}") from e
                if progress_callback:
                    progress_callback(i + 1, n_items)
            logger.debug(
                f"Sequential processing complete: {n_items} items in {time.time() - start_time:.3f}s"
            )
            return results

        results = self._parallel_map(items, worker_fn, worker_kwargs, progress_callback)
        logger.debug(
            f"Parallel processing complete: {n_items} items in {time.time() - start_time:.3f}s "
            f"with {self.n_workers} workers"
        )
        return results

    def _parallel_map(
        self,
        items: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable],
    ) -> List[Any]:
        """
        Execute parallel mapping using multiprocessing.Pool.

        Uses imap_unordered for responsiveness, then reorders results to
        match input order. Inside a `with executor:` block the persistent
        pool is reused; otherwise a pool is created for this call only.
        """
        n_items = len(items)
        worker_args = [(i, item, worker_fn, worker_kwargs) for i, item in enumerate(items)]

        results_dict: Dict[int, Any] = {}
        errors: List[Tuple[int, BaseException]] = []
        if self._pool is not None:
            self._collect(self._pool, worker_args, results_dict, errors, progress_callback)
        else:
            with Pool(processes=min(self.n_workers, n_items)) as pool:
                self._collect(pool, worker_args, results_dict, errors, progress_callback)

        if errors:
            errors.sort(key=lambda e: e[0])
            logger.error(f"{len(errors)} items failed out of {n_items}")
            for idx, error in errors[:5]:  # Log first 5 errors
                logger.error(f"  Item {idx}: {type(error).__name__}: {error}")
            if len(errors) > 5:
                logger.error(f"  ... and {len(errors) - 5} more errors")

            first = errors[0][1]
            if isinstance(first, RegistrationError):
                raise first
            raise RuntimeError(f"{len(errors)} items failed out of {n_items}: {first}") from first

        return [results_dict[i] for i in range(n_items)]

    def _collect(
        self,
        pool,
        worker_args: List[Tuple[int, Any, Callable, Dict[str, Any]]],
        results_dict: Dict[int, Any],
        errors: List[Tuple[int, BaseException]],
        progress_callback: Optional[Callable],
    ) -> None:
        n_items = len(worker_args)
        start_time = time.time()
        for completed, (idx, result, error) in enumerate(
            pool.imap_unordered(_worker_wrapper, worker_args), start=1
        ):
            if error is not None:
                errors.append((idx, error))
            else:
                results_dict[idx] = result

            if progress_callback:
                progress_callback(completed, n_items)

            # Log progress at intervals
            if completed % 10 == 0 or completed == n_items:
                elapsed = time.time() - start_time
                rate = completed / elapsed if elapsed > 0 else 0.0
                eta = (n_items - completed) / rate if rate > 0 else 0.0
                success_rate = 100 * len(results_dict) / completed
                logger.info(
                    f"Progress: {completed}/{n_items} items "
                    f"({100 * completed / n_items:.1f}%) - "
                    f"Rate: {rate:.2f} items/s - ETA: {eta:.1f}s - "
                    f"Success: {success_rate:.1f}%"
                )

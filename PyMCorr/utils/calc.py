"""Calculation utilities for PyMCorr.

Provides reference name filtering and the worker pool context manager used
by multiprocess calculations.
"""
import fnmatch
from itertools import groupby, chain
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from multiprocessing import Process
from multiprocessing.queues import Queue

logger = logging.getLogger(__name__)

ChromFilterList = Optional[List[Tuple[bool, List[str]]]]


def filter_chroms(chroms: Union[List[str], Set[str], Iterable[str]], filters: ChromFilterList) -> Set[str]:
    """Filter reference names using Unix-style patterns.

    Args:
        chroms: Reference names to filter
        filters: List of (include_flag, patterns) tuples where include_flag
                is True for include patterns and False for exclude patterns

    Returns:
        Set of reference names that match the filtering criteria

    Note:
        Filters are applied in order, with exclude patterns removing references
        from the current set and include patterns adding them back
    """
    if filters is None:
        logger.debug("There is no chromosome filters.")
        return set(chroms)

    logger.debug("Filtering chromosome lists: " + repr(chroms))
    chroms = set(chroms)
    include_chroms: Set[str] = set()
    to_include = True

    for to_include, values in groupby(filters, key=lambda f: f[0]):
        patterns = set(chain(*(f[1] for f in values)))
        logger.debug("{} filters: {}".format("Include" if to_include else "Exclude", repr(patterns)))

        filtered_chroms = set.union(*(set(fnmatch.filter(chroms, p)) for p in patterns))
        logger.debug("Matches: " + repr(filtered_chroms))

        if not to_include:
            include_chroms |= chroms - filtered_chroms
        chroms = filtered_chroms

        logger.debug("current include chroms: " + repr(include_chroms))

    if to_include:
        include_chroms |= chroms

    logger.debug("Include chroms: " + repr(include_chroms))
    return include_chroms


class ChromFilter(object):
    """Per-reference predicate for streams whose references are not known ahead."""

    def __init__(self, filters: ChromFilterList) -> None:
        self.filters = filters
        self._cache: Dict[str, bool] = {}

    def __call__(self, reference: str) -> bool:
        if self.filters is None:
            return True
        if reference not in self._cache:
            self._cache[reference] = bool(filter_chroms([reference], self.filters))
            if not self._cache[reference]:
                logger.info("Skip reference '{}'".format(reference))
        return self._cache[reference]


class exec_worker_pool(object):
    """Context manager for the lifetime of a worker pool.

    Starts every worker on enter. On a clean exit, sends one ``None``
    termination order per worker and joins them; when the block raised,
    workers are terminated instead.

    Attributes:
        workers: Worker process instances
        order_queue: Queue the workers read their orders from
    """
    def __init__(self, workers: Sequence[Process], order_queue: Queue) -> None:
        self.workers = workers
        self.order_queue = order_queue

    def __enter__(self) -> None:
        for w in self.workers:
            w.start()

    def __exit__(self, type: Optional[type], value: Optional[BaseException], traceback: Optional[Any]) -> None:
        if type is None:
            for _ in range(len(self.workers)):
                self.order_queue.put(None)
        else:
            logger.debug("Terminate workers: {}".format(value))
            for w in self.workers:
                if w.is_alive():
                    w.terminate()

        for w in self.workers:
            w.join()

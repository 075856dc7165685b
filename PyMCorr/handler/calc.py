"""Calculation handler of a single input file.

``CalcHandler`` reads the sites of one input, applies the region and
position class filters, splits them into chunks and computes one
``Calculator`` per chunk, either in-process or with a pool of
``PairingWorker`` processes. Chunk calculators are folded into a
``GenomeAggregator`` in chunk order.
"""
from __future__ import annotations

import logging
import os
import queue
from dataclasses import dataclass
from multiprocessing import Barrier, Lock, Queue
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from PyMCorr.core.aggregate import GenomeAggregator, LagCorrelationResult
from PyMCorr.core.calculator import Calculator
from PyMCorr.core.chunk import Chunk, iter_chunks
from PyMCorr.core.exceptions import NothingToCalc, WorkerError
from PyMCorr.core.pairing import compare_job, iter_job_batches, iter_jobs
from PyMCorr.interfaces.config import InputFormat, PyMCorrConfig
from PyMCorr.interfaces.site import Site
from PyMCorr.reader.bam import BAMSiteReader
from PyMCorr.reader.pileup import PileupReader
from PyMCorr.reader.profile import GenomeProfile
from PyMCorr.utils.calc import exec_worker_pool
from .worker import ERROR_REPORT, FLUSH_ORDER, JOBS_ORDER, PairingWorker

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0

SiteReader = Union[PileupReader, BAMSiteReader]


@dataclass
class _PendingChunk:
    calculator: Calculator
    nsites: int
    nreports: int = 0


class CalcHandler(object):
    """Lag correlation calculation of one input file.

    Args:
        path: mpileup text (``-`` for stdin) or BAM file
        config: Calculation parameters
        profile: Position class profile; required unless the position type
            is ``all``
    """

    def __init__(self, path: Union[str, os.PathLike], config: PyMCorrConfig,
                 profile: Optional[GenomeProfile] = None) -> None:
        self.path = path
        self.config = config
        self.profile = profile
        if config.filter_positions and profile is None:
            raise ValueError("position type '{}' requires a genome profile".format(
                config.position_type.value))

        self.input_format = config.input_format.resolve(Path(path))
        self._aggregator = GenomeAggregator(config.max_lag, config.min_chunk_samples)

    def make_reader(self) -> SiteReader:
        if self.input_format is InputFormat.BAM:
            return BAMSiteReader(self.path, self.config.min_mapq, self.config.min_base_quality,
                                 self.config.chromfilter, self.config.reference_path)
        return PileupReader(self.path, self.config.min_base_quality, self.config.chromfilter)

    def filter_sites(self, sites: Iterable[Site]) -> Iterator[Site]:
        """Keep sites inside the region and of the requested position class."""
        start = self.config.region_start
        end = self.config.region_end
        for site in sites:
            if site.pos < start or (end is not None and site.pos >= end):
                continue
            if self.profile is not None and self.config.filter_positions:
                if not self.profile.accepts(self.config.position_type, site.reference, site.pos):
                    continue
            yield site

    def iter_chunks(self, sites: Iterable[Site]) -> Iterator[Chunk]:
        reference = None
        for chunk in iter_chunks(self.filter_sites(sites), self.config.chunk_size, self.config.region_start):
            if chunk.reference != reference:
                reference = chunk.reference
                logger.info("Process {}".format(reference))
            yield chunk

    def run_calculation(self) -> LagCorrelationResult:
        """Compute the genome-wide lag correlations of the input.

        Raises:
            NothingToCalc: no site passed the filters
            SiteUnsortedError: the input is not sorted
            WorkerError: a worker process failed
        """
        self._aggregator = GenomeAggregator(self.config.max_lag, self.config.min_chunk_samples)

        with self.make_reader() as reader:
            chunks = self.iter_chunks(reader)
            if self.config.multiprocess:
                self._run_multiprocess_calculation(chunks)
            else:
                self._run_singleprocess_calculation(chunks)

        if not self._aggregator.nsites:
            raise NothingToCalc("No site to calculate in '{}'".format(self.path))

        result = self._aggregator.result()
        logger.info("{} sites in {} chunks".format(result.nsites, result.nchunks))
        return result

    def _run_singleprocess_calculation(self, chunks: Iterable[Chunk]) -> None:
        for chunk in chunks:
            calculator = Calculator(self.config.max_lag)
            for job in iter_jobs(chunk.sites, self.config.max_lag):
                compare_job(job, calculator, self.config.min_coverage)
            self._aggregator.add(calculator, len(chunk))

    def _run_multiprocess_calculation(self, chunks: Iterable[Chunk]) -> None:
        self._order_queue: Queue = Queue(self.config.queue_size)
        self._report_queue: Queue = Queue()
        self._logger_lock = Lock()
        barrier = Barrier(self.config.nproc)

        workers = [
            PairingWorker(self.config, self._order_queue, self._report_queue,
                          self._logger_lock, barrier)
            for _ in range(self.config.nproc)
        ]
        self._workers = workers
        self._pending: Dict[int, _PendingChunk] = {}
        self._next_chunk = 0

        with exec_worker_pool(workers, self._order_queue):
            for chunk_id, chunk in enumerate(chunks):
                self._pending[chunk_id] = _PendingChunk(Calculator(self.config.max_lag), len(chunk))
                for batch in iter_job_batches(chunk.sites, self.config.max_lag, self.config.job_batch_size):
                    self._put_order((JOBS_ORDER, batch))
                for _ in workers:
                    self._put_order((FLUSH_ORDER, chunk_id))
                self._collect_reports(block=False)

            while self._pending:
                self._collect_reports(block=True)

    def _put_order(self, order: Tuple[str, object]) -> None:
        while True:
            try:
                self._order_queue.put(order, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                self._collect_reports(block=False)

    def _collect_reports(self, block: bool) -> None:
        """Receive worker reports; with ``block``, wait for at least one."""
        while self._pending:
            try:
                if block:
                    report = self._report_queue.get(timeout=POLL_INTERVAL)
                else:
                    report = self._report_queue.get_nowait()
            except queue.Empty:
                self._check_workers()
                if block:
                    continue
                return
            self._handle_report(report)
            block = False

    def _handle_report(self, report: Tuple[object, object]) -> None:
        key, obj = report
        if key == ERROR_REPORT:
            raise WorkerError("Worker error:\n{}".format(obj))

        if not isinstance(obj, Calculator) or key not in self._pending:
            raise WorkerError("Unexpected worker report for chunk {!r}".format(key))
        pending = self._pending[key]
        pending.calculator.append(obj)
        pending.nreports += 1

        # release finished chunks in input order
        while self._next_chunk in self._pending:
            pending = self._pending[self._next_chunk]
            if pending.nreports < len(self._workers):
                break
            self._aggregator.add(pending.calculator, pending.nsites)
            del self._pending[self._next_chunk]
            self._next_chunk += 1

    def _check_workers(self) -> None:
        dead: List[PairingWorker] = [w for w in self._workers if not w.is_alive()]
        if not dead:
            return
        # a failed worker reports its traceback before exiting
        try:
            while True:
                self._handle_report(self._report_queue.get(timeout=POLL_INTERVAL))
        except queue.Empty:
            pass
        raise WorkerError("Worker {} exited unexpectedly (exit code {})".format(
            dead[0].name, dead[0].exitcode))

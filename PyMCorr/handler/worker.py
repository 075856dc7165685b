"""Worker process of multiprocess calculations.

A ``PairingWorker`` lives for the whole run and reads orders from the shared
order queue:

- ``(JOBS_ORDER, JobBatch)``: compare every job of the batch
- ``(FLUSH_ORDER, chunk_id)``: report ``(chunk_id, calculator)``, start a new
  calculator and wait until every worker flushed the same chunk
- ``None``: exit

Failures are reported as ``('__ERROR__', traceback)`` on the report queue.
"""
import logging
import os
import sys
import traceback
from multiprocessing import Process, Queue
from multiprocessing.synchronize import Barrier, Lock

from PyMCorr.core.calculator import Calculator
from PyMCorr.core.pairing import compare_job
from PyMCorr.interfaces.config import PyMCorrConfig

logger = logging.getLogger(__name__)

JOBS_ORDER = "jobs"
FLUSH_ORDER = "flush"
ERROR_REPORT = "__ERROR__"


class PairingWorker(Process):
    def __init__(self,
                 config: PyMCorrConfig,
                 order_queue: Queue,
                 report_queue: Queue,
                 logger_lock: Lock,
                 barrier: Barrier) -> None:
        super().__init__()

        self.config = config
        self.order_queue = order_queue
        self.report_queue = report_queue
        self.logger_lock = logger_lock
        self.barrier = barrier

    def run(self) -> None:
        calculator = Calculator(self.config.max_lag)
        try:
            while True:
                order = self.order_queue.get()
                if order is None:
                    break

                kind, payload = order
                if kind == JOBS_ORDER:
                    for job in payload.jobs(self.config.max_lag):
                        compare_job(job, calculator, self.config.min_coverage)
                elif kind == FLUSH_ORDER:
                    self.report_queue.put((payload, calculator))
                    calculator = Calculator(self.config.max_lag)
                    self.barrier.wait()
                else:
                    raise ValueError("Unknown order: {!r}".format(kind))

        except KeyboardInterrupt:
            if 0 < logger.level <= logging.DEBUG:
                raise

        except Exception as e:
            with self.logger_lock:
                logger.error("{}: Error in worker: {}".format(self.name, e))

            tb = traceback.format_exc()
            self.report_queue.put((ERROR_REPORT, tb))
            self.report_queue.close()
            self.report_queue.join_thread()
            sys.stderr.write(tb)
            sys.stderr.flush()
            os._exit(1)

        finally:
            with self.logger_lock:
                logger.debug("{}: Shutting down worker".format(self.name))

import threading

import structlog

logger = structlog.get_logger(__name__)


class PeriodicCleaner:
    """Runs a full sweep every ``interval`` seconds until ``stop`` is set.

    A failed sweep ends the loop and the error is re-raised, unless
    ``continue_on_error`` is set, in which case the next tick retries.
    """

    def __init__(self, sweeper, interval: float, continue_on_error: bool = False):
        self.sweeper = sweeper
        self.interval = interval
        self.continue_on_error = continue_on_error

    def run(self, stop: threading.Event) -> None:
        logger.info("starting periodic orphaned PV cleanup", interval_seconds=self.interval)
        # wait() returns True as soon as stop is set
        while not stop.wait(self.interval):
            try:
                self.sweeper.run_full_sweep()
            except Exception:
                if not self.continue_on_error:
                    raise
                logger.error("periodic orphaned PV cleanup failed, retrying next tick", exc_info=True)
        logger.info("stopping periodic cleanup")

import signal
import sys
import threading

import structlog
from kubernetes import client

from local_pv_cleaner.cleaner import PeriodicCleaner
from local_pv_cleaner.config import Settings
from local_pv_cleaner.executor import DeletionExecutor
from local_pv_cleaner.filters import LabelFilter, VolumeFilter
from local_pv_cleaner.inventory import KubeHostInventory, KubeVolumeInventory, load_kube_config
from local_pv_cleaner.log_config import setup_logging
from local_pv_cleaner.metrics import PrometheusMetrics
from local_pv_cleaner.monitor import NodeDeletionMonitor
from local_pv_cleaner.sweep import SweepOrchestrator

logger = structlog.get_logger(__name__)


def build_sweeper(settings: Settings, v1, metrics: PrometheusMetrics) -> SweepOrchestrator:
    volumes = KubeVolumeInventory(v1)
    return SweepOrchestrator(
        volumes=volumes,
        hosts=KubeHostInventory(v1),
        executor=DeletionExecutor(volumes, metrics, dry_run=settings.DRY_RUN),
        metrics=metrics,
        node_selector_keys=settings.node_selector_keys,
        volume_filter=VolumeFilter(storage_classes=frozenset(settings.storage_class_names)),
        page_limit=settings.PAGE_LIMIT,
    )


def _run_periodic(cleaner: PeriodicCleaner, stop: threading.Event) -> None:
    try:
        cleaner.run(stop)
    except Exception:
        # node deletions are still served; the process exits once no trigger is left
        logger.error("periodic orphaned PV cleanup failed, stopping periodic cleanup", exc_info=True)


def wait_for_triggers(threads, stop: threading.Event, poll_seconds: float = 1) -> bool:
    """Block until ``stop`` is set or every trigger thread has ended.

    Returns False when the triggers ended on their own, so the process can exit
    non-zero and be restarted by its supervisor.
    """
    # Event.wait with a timeout keeps the main thread responsive to signals
    while not stop.wait(poll_seconds):
        if not any(thread.is_alive() for thread in threads):
            logger.error("no orphaned PV cleanup trigger is running, exiting")
            return False
    return True


def main():
    settings = Settings()
    setup_logging(settings.DEBUG)
    settings.check()
    for name, value in settings.model_dump().items():
        logger.info("setting", name=name, value=value)

    load_kube_config(settings.KUBECONFIG or None)
    v1 = client.CoreV1Api()

    metrics = PrometheusMetrics()
    if settings.METRICS_PORT:
        metrics.serve(settings.METRICS_PORT)
        logger.info("serving metrics", port=settings.METRICS_PORT)

    sweeper = build_sweeper(settings, v1, metrics)
    stop = threading.Event()
    threads = []
    monitor = None

    if settings.periodic_cleanup_enabled:
        cleaner = PeriodicCleaner(
            sweeper,
            settings.PERIODIC_CLEANUP_INTERVAL_SECONDS,
            continue_on_error=settings.PERIODIC_CONTINUE_ON_ERROR,
        )
        threads.append(
            threading.Thread(target=_run_periodic, args=(cleaner, stop), name="periodic-cleanup")
        )

    if settings.ENABLE_NODE_WATCHERS:
        monitor = NodeDeletionMonitor(
            v1,
            sweeper,
            KubeHostInventory(v1),
            label_filter=LabelFilter(settings.node_label_filter),
            timeout_seconds=settings.WATCH_TIMEOUT_SECONDS,
        )
        # the watch stream blocks until its timeout, so don't hold up exit on it
        threads.append(
            threading.Thread(target=monitor.run, args=(stop,), name="node-watcher", daemon=True)
        )

    def shutdown(signum, frame):
        logger.info("received signal, shutting down", signal=signum)
        stop.set()
        if monitor is not None:
            monitor.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    logger.info("starting local-pv-cleaner", dry_run=settings.DRY_RUN)
    for thread in threads:
        thread.start()

    if not wait_for_triggers(threads, stop):
        sys.exit(1)

    for thread in threads:
        if not thread.daemon:
            thread.join()
    logger.info("local-pv-cleaner stopped")


if __name__ == "__main__":
    main()

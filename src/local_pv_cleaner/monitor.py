import threading
from typing import Optional

import structlog
from kubernetes import watch
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from local_pv_cleaner.filters import LabelFilter
from local_pv_cleaner.models import Host, SweepResult

logger = structlog.get_logger(__name__)

RETRY_SECONDS = 5


class NodeDeletionMonitor:
    """Watches Node deletions and runs a targeted sweep for each one.

    Events are handled one at a time on the watching thread.
    """

    def __init__(
        self,
        core_v1,
        sweeper,
        hosts,
        label_filter: LabelFilter = LabelFilter(),
        timeout_seconds: int = 300,
        watch_factory=watch.Watch,
    ):
        self.v1 = core_v1
        self.sweeper = sweeper
        self.hosts = hosts
        self.label_filter = label_filter
        self.timeout_seconds = timeout_seconds
        self.watch_factory = watch_factory
        self._watch = None

    def handle_event(self, event) -> Optional[SweepResult]:
        if event.get("type") != "DELETED":
            return None

        log = logger
        try:
            host = Host.from_k8s(event["object"])
            log = logger.bind(node=host.name)
            if not self.label_filter.matches(host):
                log.debug("ignoring deleted node, labels do not match filter")
                return None

            log.info("node deleted, checking for orphaned PVs")
            # a node re-registered under the same name owns its volumes again
            if self.hosts.get_host(host.name):
                log.info("node exists again, skipping orphaned PV cleanup")
                return None
            return self.sweeper.run_targeted_sweep(host.name)
        except Exception:
            # one failed event must not stop the watcher
            log.error("orphaned PV cleanup for deleted node failed", exc_info=True)
            return None

    def run(self, stop: threading.Event) -> None:
        logger.info("starting node deletion watcher")
        resource_version = ""
        while not stop.is_set():
            w = self.watch_factory()
            self._watch = w
            kwargs = {"timeout_seconds": self.timeout_seconds}
            if resource_version:
                kwargs["resource_version"] = resource_version
            try:
                for event in w.stream(self.v1.list_node, **kwargs):
                    if stop.is_set():
                        break
                    if event.get("type") == "ERROR":
                        logger.warning("node watch returned an error event", raw_object=event.get("raw_object"))
                        continue
                    metadata = getattr(event.get("object"), "metadata", None)
                    resource_version = getattr(metadata, "resource_version", None) or resource_version
                    self.handle_event(event)
            except ApiException as e:
                if e.status == 410:
                    logger.info("node watch expired, restarting from a fresh listing")
                    resource_version = ""
                    continue
                logger.error("node watch failed", status=e.status, reason=e.reason)
                stop.wait(RETRY_SECONDS)
            except HTTPError as e:
                logger.error("node watch connection failed", error=str(e))
                stop.wait(RETRY_SECONDS)
            finally:
                w.stop()
        logger.info("stopping node deletion watcher")

    def stop(self) -> None:
        if self._watch is not None:
            self._watch.stop()

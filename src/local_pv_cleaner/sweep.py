"""Full and targeted orphan sweeps.

Both sweeps work on a snapshot listed at the start of the sweep and keep no
state between runs, so a full sweep and a targeted sweep may overlap: the
slower one sees ``VolumeNotFoundError`` for volumes the other already removed
and treats them as done.
"""

from typing import Callable, Iterable, List

import structlog

from local_pv_cleaner.classifier import classify
from local_pv_cleaner.errors import VolumeNotFoundError
from local_pv_cleaner.filters import VolumeFilter
from local_pv_cleaner.models import SweepResult, Verdict, Volume

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_LIMIT = 100


def list_all_volumes(volumes, page_limit: int = DEFAULT_PAGE_LIMIT) -> List[Volume]:
    """Collect every volume by following continuation tokens.

    Volumes created or deleted while paging may be missed or seen twice; the
    next sweep picks them up.
    """
    result = []
    token = ""
    while True:
        items, token = volumes.list_volumes(page_limit, token)
        result.extend(items)
        if len(items) < page_limit or not token:
            return result


class SweepOrchestrator:
    def __init__(
        self,
        volumes,
        hosts,
        executor,
        metrics,
        node_selector_keys: Iterable[str],
        volume_filter: VolumeFilter = VolumeFilter(),
        page_limit: int = DEFAULT_PAGE_LIMIT,
    ):
        self.volumes = volumes
        self.hosts = hosts
        self.executor = executor
        self.metrics = metrics
        self.node_selector_keys = tuple(node_selector_keys)
        self.volume_filter = volume_filter
        self.page_limit = page_limit

    def run_full_sweep(self) -> SweepResult:
        logger.info("running full orphaned PV sweep")
        pvs = list_all_volumes(self.volumes, self.page_limit)
        existing_nodes = {host.name for host in self.hosts.list_hosts()}

        result = self._sweep(pvs, existing_nodes.__contains__)
        self._log_summary("full", result)
        return result

    def run_targeted_sweep(self, deleted_host: str) -> SweepResult:
        log = logger.bind(node=deleted_host)
        log.info("running targeted orphaned PV sweep")
        pvs = [
            pv
            for pv in list_all_volumes(self.volumes, self.page_limit)
            if self.volume_filter.admits_storage_class(pv.storage_class)
        ]

        result = self._sweep(pvs, lambda name: name != deleted_host)
        self._log_summary("targeted", result, node=deleted_host)
        return result

    def _sweep(self, pvs: List[Volume], host_exists: Callable[[str], bool]) -> SweepResult:
        result = SweepResult()
        for pv in pvs:
            result.examined += 1
            outcome = classify(pv, host_exists, self.volume_filter, self.node_selector_keys)
            log = logger.bind(pv=pv.name, node=outcome.host, storage_class=pv.storage_class)

            if outcome.verdict is Verdict.NOT_APPLICABLE:
                log.debug("skipping PV, not eligible for orphan cleanup")
                continue
            if outcome.verdict is Verdict.LIVE:
                log.debug("PV is still attached to an existing node")
                continue

            log.info("found orphaned PV")
            result.orphaned += 1
            result.orphaned_names.append(pv.name)
            self.metrics.orphan_detected(pv.storage_class)

            try:
                deleted = self.executor.execute(pv, outcome.host)
            except VolumeNotFoundError:
                log.info("orphaned PV already deleted")
                continue
            except Exception:
                log.error("failed to delete orphaned PV, aborting sweep", exc_info=True)
                raise

            if deleted:
                result.deleted += 1
                result.deleted_names.append(pv.name)
        return result

    @staticmethod
    def _log_summary(kind: str, result: SweepResult, **kw) -> None:
        logger.info(
            "orphaned PV sweep finished",
            sweep=kind,
            examined=result.examined,
            orphaned=result.orphaned,
            deleted=result.deleted,
            deleted_pvs=result.deleted_names,
            **kw,
        )

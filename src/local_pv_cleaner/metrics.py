from prometheus_client import REGISTRY, CollectorRegistry, Counter, start_http_server


class PrometheusMetrics:
    """Orphan counters labelled by storage class.

    Each instance registers its own counters, so tests pass a fresh
    ``CollectorRegistry``.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry
        self.orphaned_pvs_total = Counter(
            "local_pv_cleaner_orphaned_pvs_total",
            "Total number of orphaned PVs detected",
            ["storage_class"],
            registry=registry,
        )
        self.deleted_pvs_total = Counter(
            "local_pv_cleaner_deleted_pvs_total",
            "Total number of orphaned PVs deleted",
            ["storage_class"],
            registry=registry,
        )

    def orphan_detected(self, storage_class: str) -> None:
        self.orphaned_pvs_total.labels(storage_class=storage_class).inc()

    def volume_deleted(self, storage_class: str) -> None:
        self.deleted_pvs_total.labels(storage_class=storage_class).inc()

    def serve(self, port: int) -> None:
        start_http_server(port, registry=self.registry)

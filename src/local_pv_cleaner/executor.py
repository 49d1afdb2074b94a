import structlog

from local_pv_cleaner.models import Volume

logger = structlog.get_logger(__name__)


class DeletionExecutor:
    """Deletes orphaned volumes, or only logs them in dry-run mode.

    Errors from the inventory, ``VolumeNotFoundError`` included, are raised
    unchanged; deciding what to do about them is up to the sweep.
    """

    def __init__(self, volumes, metrics, dry_run: bool = False):
        self.volumes = volumes
        self.metrics = metrics
        self.dry_run = dry_run

    def execute(self, volume: Volume, host: str = "") -> bool:
        log = logger.bind(pv=volume.name, node=host, storage_class=volume.storage_class)
        if self.dry_run:
            log.info("dry-run enabled, skipping deletion of orphaned PV")
            return False

        self.volumes.delete_volume(volume.name)
        self.metrics.volume_deleted(volume.storage_class)
        log.info("deleted orphaned PV")
        return True

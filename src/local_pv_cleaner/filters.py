"""Declarative filters shared by the classifier and the node watcher."""

from dataclasses import dataclass, field

from local_pv_cleaner.models import ReclaimPolicy


@dataclass(frozen=True)
class VolumeFilter:
    """Which volumes are eligible for orphan cleanup at all.

    An empty ``storage_classes`` set admits every storage class.
    """

    storage_classes: frozenset = frozenset()
    reclaim_policy: ReclaimPolicy = ReclaimPolicy.RETAIN

    def admits(self, volume) -> bool:
        if volume.reclaim_policy is not self.reclaim_policy:
            return False
        return self.admits_storage_class(volume.storage_class)

    def admits_storage_class(self, storage_class: str) -> bool:
        return not self.storage_classes or storage_class in self.storage_classes


@dataclass(frozen=True)
class LabelFilter:
    """Every key must be present on the host with exactly the given value."""

    labels: dict = field(default_factory=dict)

    def matches(self, host) -> bool:
        host_labels = host.labels or {}
        for key, value in self.labels.items():
            if key not in host_labels or host_labels[key] != value:
                return False
        return True

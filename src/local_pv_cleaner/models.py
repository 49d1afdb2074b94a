import enum
from dataclasses import dataclass, field
from typing import Optional


class ReclaimPolicy(str, enum.Enum):
    RETAIN = "Retain"
    DELETE = "Delete"
    RECYCLE = "Recycle"


@dataclass(frozen=True)
class MatchExpression:
    key: str
    values: tuple = ()


@dataclass(frozen=True)
class Volume:
    name: str
    storage_class: str = ""
    reclaim_policy: Optional[ReclaimPolicy] = None
    # None when the volume is not node-pinned
    node_affinity: Optional[tuple] = None

    @classmethod
    def from_k8s(cls, pv) -> "Volume":
        """Build a Volume from a kubernetes.client.V1PersistentVolume."""
        spec = pv.spec
        policy = None
        if spec is not None and spec.persistent_volume_reclaim_policy:
            try:
                policy = ReclaimPolicy(spec.persistent_volume_reclaim_policy)
            except ValueError:
                policy = None

        affinity = None
        if (
            spec is not None
            and spec.node_affinity
            and spec.node_affinity.required
        ):
            affinity = tuple(
                tuple(
                    MatchExpression(expr.key, tuple(expr.values or ()))
                    for expr in (term.match_expressions or [])
                )
                for term in (spec.node_affinity.required.node_selector_terms or [])
            )

        return cls(
            name=pv.metadata.name,
            storage_class=(spec.storage_class_name or "") if spec is not None else "",
            reclaim_policy=policy,
            node_affinity=affinity,
        )


@dataclass(frozen=True)
class Host:
    name: str
    labels: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_k8s(cls, node) -> "Host":
        return cls(name=node.metadata.name, labels=dict(node.metadata.labels or {}))


class Verdict(str, enum.Enum):
    ORPHANED = "orphaned"
    LIVE = "live"
    NOT_APPLICABLE = "not-applicable"


@dataclass(frozen=True)
class Classification:
    verdict: Verdict
    host: Optional[str] = None

    @classmethod
    def orphaned(cls, host: str) -> "Classification":
        return cls(Verdict.ORPHANED, host)

    @classmethod
    def live(cls, host: str) -> "Classification":
        return cls(Verdict.LIVE, host)

    @classmethod
    def not_applicable(cls) -> "Classification":
        return cls(Verdict.NOT_APPLICABLE)

    @property
    def is_orphaned(self) -> bool:
        return self.verdict is Verdict.ORPHANED


@dataclass
class SweepResult:
    examined: int = 0
    orphaned: int = 0
    deleted: int = 0
    deleted_names: list = field(default_factory=list)
    orphaned_names: list = field(default_factory=list)

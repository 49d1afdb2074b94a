from typing import Callable, Iterable, Optional

from local_pv_cleaner.filters import VolumeFilter
from local_pv_cleaner.models import Classification, Volume


def resolve_host_name(volume: Volume, node_selector_keys: Iterable[str]) -> Optional[str]:
    """Return the node name a volume is pinned to, or None.

    The first value of the first match expression whose key is one of
    ``node_selector_keys`` wins; later, possibly conflicting, matches are
    ignored.
    """
    if not volume.node_affinity:
        return None

    keys = set(node_selector_keys)
    for term in volume.node_affinity:
        for expr in term:
            if expr.key in keys and len(expr.values) > 0:
                return expr.values[0]
    return None


def classify(
    volume: Volume,
    host_exists: Callable[[str], bool],
    volume_filter: VolumeFilter,
    node_selector_keys: Iterable[str],
) -> Classification:
    if not volume_filter.admits(volume):
        return Classification.not_applicable()

    host = resolve_host_name(volume, node_selector_keys)
    if host is None:
        return Classification.not_applicable()

    if host_exists(host):
        return Classification.live(host)
    return Classification.orphaned(host)

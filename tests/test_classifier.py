"""Unit tests for orphan classification and host name resolution."""

import pytest

from local_pv_cleaner.classifier import classify, resolve_host_name
from local_pv_cleaner.filters import VolumeFilter
from local_pv_cleaner.models import MatchExpression, ReclaimPolicy, Verdict, Volume
from tests.fakes import NODE_SELECTOR_KEY, make_volume

KEYS = [NODE_SELECTOR_KEY]


def exists(*names):
    return lambda name: name in names


class TestResolveHostName:
    def test_no_affinity(self) -> None:
        """A volume that is not node-pinned resolves to nothing."""
        assert resolve_host_name(make_volume("pv-1"), KEYS) is None

    def test_matching_key(self) -> None:
        assert resolve_host_name(make_volume("pv-1", node="node-01"), KEYS) == "node-01"

    def test_unconfigured_key(self) -> None:
        pv = make_volume("pv-1", node="node-01", key="kubernetes.io/hostname")
        assert resolve_host_name(pv, KEYS) is None

    def test_empty_values_are_skipped(self) -> None:
        """An expression without values does not stop the search."""
        pv = Volume(
            name="pv-1",
            reclaim_policy=ReclaimPolicy.RETAIN,
            node_affinity=(
                (MatchExpression(NODE_SELECTOR_KEY, ()),),
                (MatchExpression(NODE_SELECTOR_KEY, ("node-02",)),),
            ),
        )
        assert resolve_host_name(pv, KEYS) == "node-02"

    def test_first_match_wins(self) -> None:
        """Conflicting matches resolve to the first term and expression."""
        pv = Volume(
            name="pv-1",
            reclaim_policy=ReclaimPolicy.RETAIN,
            node_affinity=(
                (
                    MatchExpression("zone", ("a",)),
                    MatchExpression("other-key", ("node-01", "node-03")),
                ),
                (MatchExpression(NODE_SELECTOR_KEY, ("node-02",)),),
            ),
        )
        assert resolve_host_name(pv, [NODE_SELECTOR_KEY, "other-key"]) == "node-01"


class TestClassify:
    @pytest.mark.parametrize("policy", [ReclaimPolicy.DELETE, ReclaimPolicy.RECYCLE, None])
    def test_non_retain_is_not_applicable(self, policy) -> None:
        """Only Retain volumes are considered, whatever the host state."""
        pv = make_volume("pv-1", node="node-01", policy=policy)
        outcome = classify(pv, exists(), VolumeFilter(), KEYS)
        assert outcome.verdict is Verdict.NOT_APPLICABLE

    def test_excluded_storage_class(self) -> None:
        pv = make_volume("pv-2", node="node-01", storage_class="bar")
        outcome = classify(pv, exists(), VolumeFilter(frozenset({"foo"})), KEYS)
        assert outcome.verdict is Verdict.NOT_APPLICABLE

    def test_empty_filter_admits_all_classes(self) -> None:
        pv = make_volume("pv-2", node="node-01", storage_class="anything")
        assert classify(pv, exists(), VolumeFilter(), KEYS).is_orphaned

    def test_orphaned_when_host_missing(self) -> None:
        pv = make_volume("pv-2", node="node-01")
        outcome = classify(pv, exists("node-02"), VolumeFilter(frozenset({"bar"})), KEYS)
        assert outcome.verdict is Verdict.ORPHANED
        assert outcome.host == "node-01"

    def test_live_when_host_present(self) -> None:
        pv = make_volume("pv-2", node="node-01")
        outcome = classify(pv, exists("node-01"), VolumeFilter(), KEYS)
        assert outcome.verdict is Verdict.LIVE
        assert outcome.host == "node-01"

    def test_unpinned_volume_is_not_applicable(self) -> None:
        outcome = classify(make_volume("pv-1"), exists(), VolumeFilter(), KEYS)
        assert outcome.verdict is Verdict.NOT_APPLICABLE
        assert outcome.host is None

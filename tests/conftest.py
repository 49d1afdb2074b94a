"""Pytest configuration and shared fixtures."""

import pytest
from prometheus_client import CollectorRegistry

from local_pv_cleaner.metrics import PrometheusMetrics


@pytest.fixture
def metrics() -> PrometheusMetrics:
    """Metrics bound to a private registry so counts start at zero."""
    return PrometheusMetrics(CollectorRegistry())


def sample(metrics: PrometheusMetrics, name: str, storage_class: str) -> float:
    value = metrics.registry.get_sample_value(name, {"storage_class": storage_class})
    return value or 0.0


@pytest.fixture
def deleted_count(metrics):
    return lambda storage_class: sample(metrics, "local_pv_cleaner_deleted_pvs_total", storage_class)


@pytest.fixture
def orphaned_count(metrics):
    return lambda storage_class: sample(metrics, "local_pv_cleaner_orphaned_pvs_total", storage_class)

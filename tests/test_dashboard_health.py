import pytest

from fleetplane.dashboard.health import (
    HealthBucket,
    generic_status,
    percentage_bucket,
    percentage_status,
)


@pytest.mark.parametrize(
    "status, expected",
    [
        ("failed", HealthBucket.CRITICAL),
        ("Failed", HealthBucket.CRITICAL),
        ("pending", HealthBucket.WARNING),
        ("deleting", HealthBucket.WARNING),
        ("ok", HealthBucket.HEALTHY),
        ("Running", HealthBucket.HEALTHY),
        ("succeeded", HealthBucket.HEALTHY),
        ("healthy", HealthBucket.HEALTHY),
        ("DEPLOYED", HealthBucket.HEALTHY),
        ("offline", HealthBucket.CRITICAL),
        ("CrashLoopBackOff", HealthBucket.CRITICAL),
    ],
)
def test_generic_status_table(status, expected):
    assert generic_status({"status": status}) is expected


def test_generic_status_falls_back_to_state():
    assert generic_status({"state": True}) is HealthBucket.HEALTHY
    assert generic_status({"state": False}) is HealthBucket.CRITICAL


def test_generic_status_without_signal_is_critical():
    assert generic_status({}) is HealthBucket.CRITICAL
    assert generic_status(None) is HealthBucket.CRITICAL


@pytest.mark.parametrize(
    "percent, expected",
    [
        (0, HealthBucket.HEALTHY),
        (75, HealthBucket.HEALTHY),
        (75.5, HealthBucket.WARNING),
        (90, HealthBucket.WARNING),
        (90.1, HealthBucket.CRITICAL),
        (None, HealthBucket.CRITICAL),
        (float("nan"), HealthBucket.CRITICAL),
        (float("inf"), HealthBucket.CRITICAL),
    ],
)
def test_percentage_thresholds(percent, expected):
    assert percentage_bucket(percent) is expected


def test_percentage_status_reads_field():
    classify = percentage_status("cpuUtilization")

    assert classify({"cpuUtilization": 12}) is HealthBucket.HEALTHY
    assert classify({"cpuUtilization": 0}) is HealthBucket.HEALTHY
    assert classify({"cpuUtilization": "95"}) is HealthBucket.CRITICAL
    assert classify({"memoryUtilization": 12}) is HealthBucket.CRITICAL
    assert classify({"cpuUtilization": "n/a"}) is HealthBucket.CRITICAL
    assert classify({"cpuUtilization": float("nan")}) is HealthBucket.CRITICAL
    assert classify({"cpuUtilization": "NaN"}) is HealthBucket.CRITICAL


def test_bucket_rank_orders_worst_first():
    ordered = sorted(HealthBucket, key=lambda bucket: bucket.rank)

    assert ordered == [HealthBucket.CRITICAL, HealthBucket.WARNING, HealthBucket.HEALTHY]

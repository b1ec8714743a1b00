import asyncio

import pytest

from fleetplane.core.errors import WorkTimeoutError
from fleetplane.dashboard import (
    MAX_TABLE_ROWS,
    CardSpec,
    ChartSpec,
    DashboardAggregator,
    HealthBucket,
    SectionGroup,
    build_card,
    build_chart,
    default_groups,
    percentage_status,
)
from fleetplane.dashboard.transforms import (
    display_percentage,
    tally_chart,
    transform_cluster,
    transform_percentage,
    transform_pod,
    transform_release,
)
from fleetplane.work import OutcomeStatus, WorkOutcome

CLUSTERS = [
    {"metadata": {"name": "east"}, "ip": "10.0.0.1", "clusterip": "172.16.0.1", "status": "ok"},
    {"metadata": {"name": "west"}, "ip": "10.0.0.2", "clusterip": "172.16.0.2", "status": "offline"},
]


def _pods(*statuses):
    return [{"metadata": {"name": f"pod-{i}"}, "status": status} for i, status in enumerate(statuses)]


def _returning(value, delay=0):
    async def query():
        if delay:
            await asyncio.sleep(delay)
        return value

    return query


def _raising(exc):
    async def query():
        raise exc

    return query


POD_CARD = CardSpec(name="pods", transform=transform_pod, type="pods")


class TestBuildCard:
    def test_worst_first_and_capped(self):
        pods = _pods("Running", "Failed", "Pending", "Failed", "Running", "Running", "Failed")

        card = build_card(POD_CARD, pods, CLUSTERS)

        assert (card.critical, card.warning, card.healthy) == (3, 1, 3)
        assert card.total == 7
        assert len(card.table) == MAX_TABLE_ROWS
        assert [row.status for row in card.table] == [
            HealthBucket.CRITICAL,
            HealthBucket.CRITICAL,
            HealthBucket.CRITICAL,
            HealthBucket.WARNING,
            HealthBucket.HEALTHY,
        ]
        assert [row.resource_name for row in card.table] == ["pod-1", "pod-3", "pod-6", "pod-2", "pod-0"]

    def test_card_shape(self):
        card = build_card(POD_CARD, _pods("Running"), CLUSTERS)

        assert card.to_dict() == {
            "name": "pods",
            "type": "pods",
            "healthy": 1,
            "critical": 0,
            "warning": 0,
            "table": [
                {
                    "status": "healthy",
                    "resourceName": "pod-0",
                    "percentage": None,
                    "namespace": None,
                    "clusterIP": "",
                }
            ],
            "error": None,
        }

    def test_clusters_card_classifies_reference(self):
        spec = CardSpec(name="clusters", transform=transform_cluster, type="clusters", classify_reference=True)
        status_data = [{"metadata": {"name": "east"}, "ip": "10.0.0.1"}, {"metadata": {"name": "west"}, "ip": "10.0.0.2"}]

        card = build_card(spec, status_data, CLUSTERS)

        assert (card.healthy, card.critical) == (1, 1)
        assert card.table[0].resource_name == "west"
        assert card.table[0].cluster_ip == "10.0.0.2"

    def test_utilization_card_rounds_percentage(self):
        spec = CardSpec(
            name="cpu",
            transform=transform_percentage("cpuUtilization"),
            status=percentage_status("cpuUtilization"),
        )
        status_data = [
            {"metadata": {"name": "east"}, "cpuUtilization": 92.4},
            {"metadata": {"name": "west"}, "cpuUtilization": 40.6},
        ]

        card = build_card(spec, status_data, CLUSTERS)

        assert (card.critical, card.healthy) == (1, 1)
        assert [row.percentage for row in card.table] == [92, 41]

    def test_non_finite_utilization_keeps_card(self):
        spec = CardSpec(
            name="cpu",
            transform=transform_percentage("cpuUtilization"),
            status=percentage_status("cpuUtilization"),
        )
        status_data = [
            {"metadata": {"name": "east"}, "cpuUtilization": float("inf")},
            {"metadata": {"name": "west"}, "cpuUtilization": float("nan")},
            {"metadata": {"name": "north"}, "cpuUtilization": 10},
        ]

        card = build_card(spec, status_data, CLUSTERS)

        assert card.error is None
        assert (card.critical, card.healthy) == (2, 1)
        assert [row.percentage for row in card.table] == [None, None, 10]

    def test_release_row_takes_cluster_ip_from_reference(self):
        spec = CardSpec(name="helm releases", transform=transform_release, type="releases")
        releases = [{"name": "nginx", "namespace": "web", "cluster": "west", "status": "DEPLOYED"}]

        card = build_card(spec, releases, CLUSTERS)

        row = card.table[0].to_dict()
        assert row["clusterIP"] == "172.16.0.2"
        assert row["namespace"] == "web"


def test_build_chart_tallies_reference_status():
    spec = ChartSpec(name="cluster health", transform=tally_chart)

    chart = build_chart(spec, [{}, {}, {}], [{"status": "ok"}, {"status": "failed"}, {}])

    assert chart.data == [["healthy", "1"], ["warning", "0"], ["critical", "2"]]


class TestAggregate:
    @pytest.mark.asyncio
    async def test_timeout_degrades_only_that_group(self):
        groups = [
            SectionGroup(
                name="pods",
                status_query=_returning(_pods("Running", "Failed")),
                reference_query=_returning(CLUSTERS),
                cards=[POD_CARD],
            ),
            SectionGroup(
                name="clusters",
                status_query=_returning([], delay=1),
                reference_query=_returning(CLUSTERS),
                cards=[CardSpec(name="clusters", transform=transform_cluster, classify_reference=True)],
                charts=[ChartSpec(name="cluster health", transform=tally_chart)],
            ),
        ]

        data = await DashboardAggregator(timeout=0.05).aggregate(groups)

        assert data.card("clusters").to_dict() == {"name": "clusters", "error": "Request timed out"}
        assert data.chart_items[0].to_dict() == {"name": "cluster health", "error": "Request timed out"}
        pods = data.card("pods")
        assert (pods.healthy, pods.critical, pods.error) == (1, 1, None)
        assert [err.to_dict() for err in data.errors] == [
            {"group": "clusters", "sections": ["clusters", "cluster health"], "error": "Request timed out"}
        ]

    @pytest.mark.asyncio
    async def test_error_payload_degrades_group(self):
        groups = [
            SectionGroup(
                name="pods",
                status_query=_returning({"code": 500, "message": "boom"}),
                reference_query=_returning(CLUSTERS),
                cards=[POD_CARD],
            )
        ]

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert data.card("pods").error == "An error occurred while getting status data"

    @pytest.mark.asyncio
    async def test_reference_failure_degrades_group(self):
        groups = [
            SectionGroup(
                name="pods",
                status_query=_returning(_pods("Running")),
                reference_query=_raising(RuntimeError("clusters unavailable")),
                cards=[POD_CARD],
            )
        ]

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert data.card("pods").error == "clusters unavailable"
        assert data.errors[0].group == "pods"

    @pytest.mark.asyncio
    async def test_failed_work_outcome_degrades_group(self):
        failed = WorkOutcome(OutcomeStatus.TIMEOUT, error=WorkTimeoutError("Manager request timed out"))
        groups = [
            SectionGroup(
                name="pods",
                status_query=_returning(failed),
                reference_query=_returning(CLUSTERS),
                cards=[POD_CARD],
            )
        ]

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert data.card("pods").error == "Manager request timed out"

    @pytest.mark.asyncio
    async def test_work_outcome_items_are_used(self):
        outcome = WorkOutcome(OutcomeStatus.SUCCESS, items=_pods("Running", "Pending"))
        groups = [
            SectionGroup(
                name="pods",
                status_query=_returning(outcome),
                reference_query=_returning(CLUSTERS),
                cards=[POD_CARD],
            )
        ]

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert (data.card("pods").healthy, data.card("pods").warning) == (1, 1)
        assert data.errors == []

    @pytest.mark.asyncio
    async def test_latest_completed_group_comes_first(self):
        groups = [
            SectionGroup(
                name="slow",
                status_query=_returning(_pods("Running"), delay=0.03),
                reference_query=_returning(CLUSTERS),
                cards=[CardSpec(name="slow", transform=transform_pod)],
            ),
            SectionGroup(
                name="fast",
                status_query=_returning(_pods("Running")),
                reference_query=_returning(CLUSTERS),
                cards=[CardSpec(name="fast", transform=transform_pod)],
            ),
        ]

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert [card.name for card in data.card_items] == ["slow", "fast"]
        assert set(data.to_dict()) == {"cardItems", "pieChartItems", "errors"}


class TestDefaultGroups:
    def test_standard_sections(self):
        groups = default_groups(
            clusters=_returning(CLUSTERS),
            cluster_status=_returning([]),
            releases=_returning([]),
            pods=_returning([]),
        )

        assert [group.name for group in groups] == ["utilization", "releases", "pods", "clusters"]
        assert [card.name for card in groups[0].cards] == ["cpu", "memory", "storage"]
        assert groups[1].cards[0].name == "helm releases"
        assert groups[3].cards[0].classify_reference

    @pytest.mark.asyncio
    async def test_aggregate_default_groups(self):
        status = [
            {"metadata": {"name": "east"}, "ip": "10.0.0.1", "cpuUtilization": 80, "memoryUtilization": 20, "storageUtilization": 95},
            {"metadata": {"name": "west"}, "ip": "10.0.0.2", "cpuUtilization": 10, "memoryUtilization": 20, "storageUtilization": 30},
        ]
        groups = default_groups(
            clusters=_returning(CLUSTERS),
            cluster_status=_returning(status),
            releases=_returning([{"name": "nginx", "namespace": "web", "cluster": "east", "status": "deployed"}]),
            pods=_raising(RuntimeError("pods unavailable")),
        )

        data = await DashboardAggregator(timeout=1).aggregate(groups)

        assert len(data.card_items) == 6
        assert (data.card("cpu").warning, data.card("cpu").healthy) == (1, 1)
        assert data.card("storage").critical == 1
        assert data.card("helm releases").healthy == 1
        assert (data.card("clusters").healthy, data.card("clusters").critical) == (1, 1)
        assert data.card("pods").error == "pods unavailable"
        assert [err.group for err in data.errors] == ["pods"]


@pytest.mark.parametrize(
    "value, expected",
    [
        (72.5, 73),
        (72.4, 72),
        (0.5, 1),
        ("88.5", 89),
        (None, None),
        ("n/a", None),
        (float("inf"), None),
        (float("nan"), None),
    ],
)
def test_display_percentage_rounds_half_up(value, expected):
    assert display_percentage(value) == expected


@pytest.mark.asyncio
async def test_non_finite_utilization_does_not_degrade_group():
    status = [{"metadata": {"name": "east"}, "cpuUtilization": float("inf"), "memoryUtilization": 1, "storageUtilization": 1}]
    groups = default_groups(
        clusters=_returning(CLUSTERS),
        cluster_status=_returning(status),
        releases=_returning([]),
        pods=_returning([]),
    )

    data = await DashboardAggregator(timeout=1).aggregate(groups)

    assert data.errors == []
    assert data.card("cpu").critical == 1
    assert data.card("memory").healthy == 1

import pytest

from ec2_dashboard.ingest import normalize
from ec2_dashboard.pivot import (
    TOTAL_ROW_KEY, TOTAL_SERIES_NAME, build_grid, build_series, build_view, trend_between,
)
from ec2_dashboard.schemas import Dimension, FilterSpec, Granularity, Trend, ViewKind

OCTOBER = FilterSpec(start_date="2025-10-01", end_date="2025-10-08")


def _records(*rows):
    return [normalize(r) for r in rows]


def test_two_project_scenario(scenario_records):
    view = build_view(
        scenario_records,
        FilterSpec(start_date="2025-10-01", end_date="2025-10-02"),
        ViewKind.PRODUCT_TABLE,
    )
    grid = view.grid
    assert view.grouping is Dimension.PROJECT
    assert grid.date_axis == ["2025-10-01", "2025-10-02"]
    assert grid.group_axis == ["P1", "P2"]
    assert grid.cell("P1", "2025-10-01").value == 10
    assert grid.cell("P1", "2025-10-01").trend is Trend.NONE
    assert grid.cell("P1", "2025-10-02").value == 15
    assert grid.cell("P1", "2025-10-02").trend is Trend.UP
    assert grid.cell("P2", "2025-10-02").value == 0
    assert grid.cell("P2", "2025-10-02").instance_count == 0
    assert grid.row_total("P1") == 25
    assert grid.row_total("P2") == 5
    assert grid.column_total("2025-10-01") == 15
    assert grid.column_total("2025-10-02") == 15
    assert grid.grand_total == 30


def test_missing_day_after_spend_trends_down(scenario_records):
    grid = build_grid(scenario_records, Dimension.PROJECT)
    assert grid.cell("P2", "2025-10-02").trend is Trend.DOWN


@pytest.mark.parametrize("current, previous, expected", [
    (1.0, None, Trend.NONE),
    (2.0, 1.0, Trend.UP),
    (1.0, 2.0, Trend.DOWN),
    (2.0, 2.0, Trend.NONE),
    (0.0, 0.0, Trend.NONE),
])
def test_trend_between(current, previous, expected):
    assert trend_between(current, previous) is expected


def test_trend_follows_date_order():
    costs = {"2025-10-04": 3, "2025-10-01": 10, "2025-10-03": 15, "2025-10-02": 15}
    records = _records(*[{"Data": d, "project-id": "P1", "Cost_USD_Day": c} for d, c in costs.items()])
    grid = build_grid(records, Dimension.PROJECT)
    assert grid.date_axis == ["2025-10-01", "2025-10-02", "2025-10-03", "2025-10-04"]
    cells = [grid.cell("P1", d) for d in grid.date_axis]
    assert [c.value for c in cells] == [10, 15, 15, 3]
    assert [c.trend for c in cells] == [Trend.NONE, Trend.UP, Trend.NONE, Trend.DOWN]


def test_sub_cent_differences_still_trend():
    records = _records(
        {"Data": "2025-10-01", "project-id": "P1", "Cost_USD_Day": 0.3},
        {"Data": "2025-10-02", "project-id": "P1", "Cost_USD_Day": 0.1},
        {"Data": "2025-10-02", "project-id": "P1", "Cost_USD_Day": 0.2},
    )
    grid = build_grid(records, Dimension.PROJECT)
    assert round(grid.cell("P1", "2025-10-02").value, 2) == 0.3
    assert grid.cell("P1", "2025-10-02").trend is Trend.UP


def test_product_table_cells(ec2_records):
    view = build_view(ec2_records, OCTOBER, ViewKind.PRODUCT_TABLE)
    grid = view.grid
    assert grid.date_axis == ["2025-10-01", "2025-10-02", "2025-10-03"]
    assert grid.group_axis == ["checkout", "search", "billing"]

    checkout = [grid.cell("checkout", d) for d in grid.date_axis]
    assert [c.value for c in checkout] == pytest.approx([16.5, 19.6, 14.0])
    assert [c.trend for c in checkout] == [Trend.NONE, Trend.UP, Trend.DOWN]
    assert [c.instance_count for c in checkout] == [2, 2, 1]

    billing = grid.cell("billing", "2025-10-03")
    assert billing.value == 0
    assert billing.instance_count == 1
    assert grid.row_total("search") == pytest.approx(5.25)
    assert grid.grand_total == pytest.approx(55.35)


def test_totals_agree(ec2_records):
    for view_kind in ViewKind:
        grid = build_view(ec2_records, OCTOBER, view_kind).grid
        for group in grid.group_axis:
            assert grid.row_total(group) == pytest.approx(
                sum(grid.cell(group, d).value for d in grid.date_axis)
            )
        for date in grid.date_axis:
            assert grid.column_total(date) == pytest.approx(
                sum(grid.cell(g, date).value for g in grid.group_axis)
            )
        assert grid.grand_total == pytest.approx(sum(grid.row_total(g) for g in grid.group_axis))
        assert grid.grand_total == pytest.approx(sum(grid.column_total(d) for d in grid.date_axis))


def test_total_row_is_last_and_trendless(ec2_records):
    grid = build_view(ec2_records, OCTOBER, ViewKind.COST_CENTER_TABLE).grid
    total = grid.rows[-1]
    assert total is grid.total_row
    assert total.is_total and total.key == TOTAL_ROW_KEY
    assert sum(1 for r in grid.rows if r.is_total) == 1
    assert all(c.trend is Trend.NONE and c.instance_count == 0 for c in total.cells.values())
    assert total.total == grid.grand_total
    assert [total.cells[d].value for d in grid.date_axis] == [grid.column_total(d) for d in grid.date_axis]


def test_records_without_group_value_stay_off_the_group_axis():
    records = _records(
        {"Data": "2025-10-01", "project-id": "P1", "Cost_USD_Day": 4},
        {"Data": "2025-10-02", "project-id": "", "Cost_USD_Day": 6},
        {"Data": "2025-10-02", "Cost_USD_Day": 1},
    )
    view = build_view(records, OCTOBER, ViewKind.PRODUCT_TABLE)
    assert view.grid.date_axis == ["2025-10-01", "2025-10-02"]
    assert view.grid.group_axis == ["P1"]
    assert view.grid.column_total("2025-10-02") == 0
    assert view.grid.grand_total == 4
    assert view.summary.total_cost == 11


def test_unknown_cell_lookups(scenario_records):
    grid = build_grid(scenario_records, Dimension.PROJECT)
    assert grid.cell("P9", "2025-10-01") is None
    assert grid.cell("P1", "2030-01-01") is None
    assert grid.cell(TOTAL_ROW_KEY, "2025-10-01") is None
    assert grid.row_total("P9") == 0
    assert grid.column_total("2030-01-01") == 0


@pytest.mark.parametrize("records_fixture", ["ec2_records", None])
def test_no_data_views(request, records_fixture):
    records = request.getfixturevalue(records_fixture) if records_fixture else []
    inverted = FilterSpec(start_date="2025-10-08", end_date="2025-10-01")
    for spec in (inverted, OCTOBER if not records else FilterSpec(project_id="nope")):
        view = build_view(records, spec, ViewKind.PROJECT_ANALYSIS)
        assert view.has_data is False
        assert view.grid.date_axis == []
        assert view.grid.group_axis == []
        assert view.grid.rows == []
        assert view.series == []
        assert view.summary.record_count == 0


def test_series(ec2_records):
    view = build_view(ec2_records, OCTOBER, ViewKind.COST_CENTER_ANALYSIS)
    assert [s.name for s in view.series] == ["CC-100", "CC-200", "CC-300", TOTAL_SERIES_NAME]
    assert view.series[0].points == pytest.approx([16.5, 19.6, 14.0])
    assert view.series[1].points == pytest.approx([3.25, 2.0, 0.0])
    total = view.series[-1]
    assert total.is_total
    assert not any(s.is_total for s in view.series[:-1])
    assert total.points == [view.grid.column_total(d) for d in view.grid.date_axis]


def test_series_without_total_line(ec2_records):
    view = build_view(ec2_records, OCTOBER, ViewKind.COST_CENTER_ANALYSIS, show_total_line=False)
    assert [s.name for s in view.series] == ["CC-100", "CC-200", "CC-300"]
    assert build_series(view.grid, show_total_line=True)[-1].name == TOTAL_SERIES_NAME


def test_environment_drill_down_groups_by_role(ec2_records):
    spec = OCTOBER.replace(environment="prod-east")
    view = build_view(ec2_records, spec, ViewKind.PROJECT_ANALYSIS)
    assert view.grouping is Dimension.INSTANCE_ROLE
    assert view.grid.group_axis == ["web", "worker", "api"]
    web = [view.grid.cell("web", d) for d in view.grid.date_axis]
    assert [c.value for c in web] == [12.5, 12.5, 14.0]
    assert [c.trend for c in web] == [Trend.NONE, Trend.NONE, Trend.UP]

    by_role = build_view(ec2_records, spec.replace(instance_role="web"), ViewKind.PROJECT_ANALYSIS)
    assert by_role.grouping is Dimension.PROJECT
    assert by_role.grid.group_axis == ["checkout"]


def test_project_drill_down_uses_granularity(ec2_records):
    spec = OCTOBER.replace(project_id="checkout")
    by_type = build_view(ec2_records, spec, ViewKind.PRODUCT_TABLE)
    assert by_type.grid.group_axis == ["production", "non-production"]
    by_env = build_view(ec2_records, spec, ViewKind.PRODUCT_TABLE, Granularity.ENVIRONMENT)
    assert by_env.grouping is Dimension.ENVIRONMENT
    assert by_env.grid.group_axis == ["prod-east", "qa"]


def test_cost_center_drill_down_groups_by_project(ec2_records):
    view = build_view(ec2_records, OCTOBER.replace(cost_center="CC-100"), ViewKind.COST_CENTER_TABLE)
    assert view.grouping is Dimension.PROJECT
    assert view.grid.group_axis == ["checkout", "search"]
    assert view.summary.top_level_count == 1


def test_views_ignore_filters_they_do_not_offer(ec2_records):
    view = build_view(ec2_records, OCTOBER.replace(project_id="search"), ViewKind.COST_CENTER_ANALYSIS)
    assert view.filters.project_id is None
    assert view.grid.group_axis == ["CC-100", "CC-200", "CC-300"]


def test_summary(ec2_records):
    summary = build_view(ec2_records, OCTOBER, ViewKind.PROJECT_ANALYSIS).summary
    assert summary.total_cost == pytest.approx(55.35)
    assert summary.record_count == 9
    assert summary.instance_count == 6
    assert summary.top_level_count == 3
    assert summary.groups == ["checkout", "search", "billing"]

    pinned = build_view(ec2_records, OCTOBER.replace(project_id="search"), ViewKind.PROJECT_ANALYSIS).summary
    assert pinned.top_level_count == 1
    assert pinned.instance_count == 2


def test_view_is_recomputed_not_cached(ec2_records):
    first = build_view(ec2_records, OCTOBER, ViewKind.PRODUCT_TABLE)
    second = build_view(ec2_records, OCTOBER, ViewKind.PRODUCT_TABLE)
    assert first == second
    assert first is not second


def test_total_series_stays_distinct_from_a_group_named_total():
    records = _records(
        {"Data": "2025-10-01", "project-id": "Total", "Cost_USD_Day": 2},
        {"Data": "2025-10-01", "project-id": "P1", "Cost_USD_Day": 3},
    )
    series = build_view(records, OCTOBER, ViewKind.PROJECT_ANALYSIS).series
    assert [s.name for s in series] == ["Total", "P1", "Total (all)"]
    assert series[-1].is_total
    assert series[-1].points == [5.0]

"""Group x date aggregation for every dashboard view.

All four views share this engine; they differ only in which filters they
accept and which dimension they group by (see ``views``). Everything here is
recomputed from scratch on each call.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .dimensions import distinct_values
from .filters import apply_filter
from .schemas import (
    Cell, ChartSeries, CostRecord, Dimension, FilterSpec, Granularity,
    PivotGrid, PivotRow, PivotView, Trend, ViewKind, ViewSummary,
)
from .views import TOP_DIMENSION, grouping_for, scope_filters, view_kind

LOG = logging.getLogger(__name__)

TOTAL_ROW_KEY = "TOTAL"
TOTAL_SERIES_NAME = "Total"


def trend_between(current: float, previous: Optional[float]) -> Trend:
    # full-precision comparison: sub-cent differences still count
    if previous is None or current == previous:
        return Trend.NONE
    return Trend.UP if current > previous else Trend.DOWN


def build_grid(records: Iterable[CostRecord], grouping: Dimension) -> PivotGrid:
    records = list(records)
    if not records:
        return PivotGrid()

    date_axis = sorted({r.date for r in records})
    group_axis = distinct_values(records, grouping)

    sums: Dict[Tuple[str, str], float] = {}
    counts: Dict[Tuple[str, str], int] = {}
    for r in records:
        group = r.value_of(grouping)
        if not group:
            continue
        key = (group, r.date)
        sums[key] = sums.get(key, 0.0) + r.cost_usd_day
        counts[key] = counts.get(key, 0) + 1

    column_totals = {date: 0.0 for date in date_axis}
    rows: List[PivotRow] = []
    for group in group_axis:
        cells: Dict[str, Cell] = {}
        previous = None
        row_total = 0.0
        for date in date_axis:
            value = sums.get((group, date), 0.0)
            cells[date] = Cell(
                value=value,
                trend=trend_between(value, previous),
                instance_count=counts.get((group, date), 0),
            )
            row_total += value
            column_totals[date] += value
            previous = value
        rows.append(PivotRow(key=group, cells=cells, total=row_total))

    grand_total = 0.0
    for date in date_axis:
        grand_total += column_totals[date]
    rows.append(PivotRow(
        key=TOTAL_ROW_KEY,
        cells={date: Cell(value=column_totals[date]) for date in date_axis},
        total=grand_total,
        is_total=True,
    ))

    return PivotGrid(
        date_axis=date_axis,
        group_axis=group_axis,
        rows=rows,
        column_totals=column_totals,
        grand_total=grand_total,
    )


def _total_series_name(groups: List[str]) -> str:
    # legends key on names; keep the aggregate distinct from a group called "Total"
    name = TOTAL_SERIES_NAME
    while name in groups:
        name = f"{name} (all)"
    return name


def build_series(grid: PivotGrid, show_total_line: bool = True) -> List[ChartSeries]:
    if not grid.date_axis:
        return []
    series = [
        ChartSeries(name=row.key, points=[row.cells[d].value for d in grid.date_axis])
        for row in grid.rows
        if not row.is_total
    ]
    if show_total_line:
        total = grid.total_row
        series.append(ChartSeries(
            name=_total_series_name(grid.group_axis),
            points=[total.cells[d].value for d in grid.date_axis],
            is_total=True,
        ))
    return series


def summarize(
    records: List[CostRecord], spec: FilterSpec, top: Dimension, groups: List[str]
) -> ViewSummary:
    """KPI figures shown above each view."""
    total = 0.0
    for r in records:
        total += r.cost_usd_day
    if spec.is_set(top):
        top_level_count = 1
    else:
        top_level_count = len(distinct_values(records, top))
    return ViewSummary(
        total_cost=total,
        record_count=len(records),
        # rows without an instance id collapse into one bucket
        instance_count=len({r.instance_id for r in records}),
        top_level_count=top_level_count,
        groups=list(groups),
    )


def build_view(
    records: Iterable[CostRecord],
    spec: FilterSpec,
    view: Union[str, ViewKind],
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE,
    show_total_line: bool = True,
) -> PivotView:
    view = view_kind(view)
    granularity = Granularity(granularity)
    spec = scope_filters(view, spec)
    working = apply_filter(records, spec)
    grouping = grouping_for(view, spec, granularity)

    grid = build_grid(working, grouping)
    series = build_series(grid, show_total_line)
    summary = summarize(working, spec, TOP_DIMENSION[view], grid.group_axis)
    LOG.debug(
        f"built {view.value}: {len(working)} records, grouping={grouping.value}, "
        f"{len(grid.group_axis)} groups x {len(grid.date_axis)} dates"
    )
    return PivotView(
        view=view,
        grouping=grouping,
        granularity=granularity,
        show_total_line=show_total_line,
        filters=spec,
        grid=grid,
        series=series,
        summary=summary,
    )

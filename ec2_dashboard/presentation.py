"""Render-ready shapes built from a PivotView: an ECharts option and a table."""
import datetime as dt
from typing import Any, Dict, List

from .schemas import PivotView, Trend
from .views import TABLE_VIEWS, row_header

PALETTE = [
    "#1976d2", "#388e3c", "#f57c00", "#d32f2f", "#7b1fa2",
    "#795548", "#607d8b", "#e91e63", "#9c27b0", "#3f51b5",
]
TREND_ARROWS = {Trend.UP: "▲", Trend.DOWN: "▼", Trend.NONE: ""}
EMPTY_CELL = "-"


def format_usd(value: float) -> str:
    return f"${value:.2f}"


def chart_option(view: PivotView) -> Dict[str, Any]:
    if not view.has_data:
        return {
            "xAxis": {"type": "category", "data": []},
            "yAxis": {"type": "value"},
            "series": [],
            "legend": {"data": []},
        }

    series: List[Dict[str, Any]] = []
    for index, s in enumerate(view.series):
        entry = {
            "name": s.name,
            "type": "line",
            "data": [f"{p:.2f}" for p in s.points],
            "smooth": True,
        }
        if s.is_total:
            entry.update({
                "lineStyle": {"color": "#000", "width": 3, "type": "dashed"},
                "symbol": "diamond",
                "symbolSize": 6,
                "z": 10,
            })
        else:
            entry.update({
                "lineStyle": {"color": PALETTE[index % len(PALETTE)]},
                "symbol": "circle",
                "symbolSize": 4,
            })
        series.append(entry)

    return {
        "xAxis": {"type": "category", "data": list(view.grid.date_axis)},
        "yAxis": {"type": "value", "name": "Cost (USD)"},
        "tooltip": {"trigger": "axis"},
        "series": series,
        "legend": {"data": [s["name"] for s in series], "bottom": 0},
    }


def period_label(date_axis: List[str]) -> str:
    """Month and year of the middle date, e.g. 'October 2025'."""
    if not date_axis:
        return "No data"
    middle = dt.date.fromisoformat(date_axis[len(date_axis) // 2])
    return middle.strftime("%B %Y")


def _format_cell(value: float, trend: Trend, with_arrow: bool) -> str:
    if value == 0:
        return EMPTY_CELL
    text = format_usd(value)
    arrow = TREND_ARROWS[trend] if with_arrow else ""
    return f"{text} {arrow}" if arrow else text


def table_layout(view: PivotView) -> Dict[str, Any]:
    grid = view.grid
    if not view.has_data:
        return {"title": period_label([]), "headers": [], "rows": []}

    headers = [{"key": "group", "display": row_header(view.view, view.grouping)}]
    headers += [{"key": d, "display": str(int(d.split("-")[2]))} for d in grid.date_axis]
    headers.append({"key": "total", "display": "Total"})

    rows = []
    for row in grid.rows:
        cells = {}
        for d in grid.date_axis:
            cell = row.cells[d]
            cells[d] = {
                "display": _format_cell(cell.value, cell.trend, not row.is_total),
                "trend": cell.trend.value,
                "instance_count": cell.instance_count,
            }
        cells["total"] = {
            "display": _format_cell(row.total, Trend.NONE, False),
            "trend": Trend.NONE.value,
            "instance_count": 0,
        }
        rows.append({"group": row.key, "is_total": row.is_total, "cells": cells})

    return {"title": period_label(grid.date_axis), "headers": headers, "rows": rows}


def is_table_view(view: PivotView) -> bool:
    return view.view in TABLE_VIEWS

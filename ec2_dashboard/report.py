import os
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .fetchers.report_fetcher import fetch_all_records
from .ingest import load_records
from .pivot import build_view
from .presentation import format_usd, is_table_view, table_layout
from .schemas import Granularity, PivotView, ViewKind
from .views import DEFAULT_END_DATE, DEFAULT_START_DATE, dashboard_filters


def _source_fetcher(source: Optional[str]):
    if source and "://" not in source and (source.endswith(".json") or Path(source).exists()):
        return lambda: json.loads(Path(source).read_text(encoding="utf-8"))
    return lambda: fetch_all_records(source)


def render(view: PivotView) -> str:
    layout = table_layout(view)
    lines = [layout["title"]]
    if not layout["rows"]:
        lines.append("(no data)")
    else:
        header = [h["display"] for h in layout["headers"]]
        body = [[r["group"]] + [r["cells"][h["key"]]["display"] for h in layout["headers"][1:]]
                for r in layout["rows"]]
        widths = [max(len(row[i]) for row in [header] + body) for i in range(len(header))]
        for row in [header] + body:
            cols = [row[0].ljust(widths[0])] + [c.rjust(w) for c, w in zip(row[1:], widths[1:])]
            lines.append("  ".join(cols))
    if not is_table_view(view) and view.series:
        lines.append("series: " + ", ".join(s.name for s in view.series))
    summary = view.summary
    lines.append(
        f"records={summary.record_count} instances={summary.instance_count} "
        f"groups={len(summary.groups)} total={format_usd(summary.total_cost)}"
    )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Print an EC2 cost pivot table")
    parser.add_argument("--view", choices=[v.value for v in ViewKind], default=ViewKind.PRODUCT_TABLE.value)
    parser.add_argument("--source", help="report URL or JSON file (defaults to EC2_REPORT_URL)")
    parser.add_argument("--start", default=DEFAULT_START_DATE)
    parser.add_argument("--end", default=DEFAULT_END_DATE)
    parser.add_argument("--project")
    parser.add_argument("--cost-center")
    parser.add_argument("--environment-type")
    parser.add_argument("--environment")
    parser.add_argument("--instance-role")
    parser.add_argument("--granularity", choices=[g.value for g in Granularity],
                        default=Granularity.ENVIRONMENT_TYPE.value)
    parser.add_argument("--no-total-line", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="[ec2-dashboard] %(message)s")

    try:
        spec = dashboard_filters(
            start_date=args.start,
            end_date=args.end,
            project_id=args.project,
            cost_center=args.cost_center,
            environment_type=args.environment_type,
            environment=args.environment,
            instance_role=args.instance_role,
        )
    except ValidationError as e:
        parser.error(str(e))

    records, _ = load_records(_source_fetcher(args.source))
    view = build_view(records, spec, args.view, Granularity(args.granularity), not args.no_total_line)
    print(render(view))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

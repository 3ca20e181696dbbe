from prometheus_client import Counter, Gauge, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

from .schemas import PivotView

registry = CollectorRegistry()
records_loaded_gauge = Gauge("ec2_dashboard_records_loaded", "Cost records held by the dashboard", registry=registry)
records_dropped_gauge = Gauge("ec2_dashboard_records_dropped", "Raw rows dropped for an invalid date", registry=registry)
load_success_gauge = Gauge("ec2_dashboard_load_success", "1 when the last load produced records", registry=registry)
view_builds_counter = Counter("ec2_dashboard_view_builds", "Views computed", ["view"], registry=registry)
period_cost_gauge = Gauge("ec2_dashboard_period_cost_usd", "Total cost of the last built view", ["view"], registry=registry)


def record_load(loaded: int, dropped: int):
    records_loaded_gauge.set(loaded)
    records_dropped_gauge.set(dropped)
    load_success_gauge.set(1 if loaded else 0)


def record_view(view: PivotView):
    view_builds_counter.labels(view=view.view.value).inc()
    period_cost_gauge.labels(view=view.view.value).set(view.summary.total_cost)


def scrape_metrics():
    return generate_latest(registry), CONTENT_TYPE_LATEST

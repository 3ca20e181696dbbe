import pytest

from ec2_dashboard.ingest import parse_payload


def _row(date, project, cost_center, env_type, env, role, instance, cost):
    return {
        "Data": date,
        "project-id": project,
        "cost-center": cost_center,
        "environment-type": env_type,
        "environment": env,
        "Instance_Role": role,
        "ID_Instancia": instance,
        "Cost_USD_Day": cost,
    }


@pytest.fixture
def scenario_payload():
    """Three rows: P1 on two days, P2 on the first day only."""
    return {"data": [
        {"Data": "2025-10-01", "project-id": "P1", "Cost_USD_Day": 10},
        {"Data": "2025-10-02", "project-id": "P1", "Cost_USD_Day": 15},
        {"Data": "2025-10-01", "project-id": "P2", "Cost_USD_Day": 5},
    ]}


@pytest.fixture
def scenario_records(scenario_payload):
    records, _ = parse_payload(scenario_payload)
    return records


@pytest.fixture
def ec2_payload():
    return {"data": [
        _row("2025-10-01", "checkout", "CC-100", "production", "prod-east", "web", "i-001", "12.50"),
        _row("2025-10-01", "checkout", "CC-100", "production", "prod-east", "worker", "i-002", "4"),
        _row("2025-10-01", "search", "CC-200", "non-production", "staging", "web", "i-003", 3.25),
        _row("2025-10-02", "checkout", "CC-100", "production", "prod-east", "web", "i-001", "12.50"),
        _row("2025-10-02", "checkout", "CC-100", "non-production", "qa", "db", "i-004", "7.10"),
        _row("2025-10-02", "search", "CC-200", "non-production", "staging", "web", "i-003", "2.00"),
        _row("2025-10-03", "checkout", "CC-100", "production", "prod-east", "web", "i-001", "14"),
        _row("2025-10-03", "search", "CC-100", "production", "prod-east", "api", "i-005", None),
        _row("2025-10-03", "billing", "CC-300", "production", "prod-west", "api", "i-006", "bad"),
        _row("2025-10-09", "billing", "CC-300", "production", "prod-west", "api", "i-006", "8"),
    ]}


@pytest.fixture
def ec2_records(ec2_payload):
    records, _ = parse_payload(ec2_payload)
    return records

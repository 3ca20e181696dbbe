from typing import Iterable, List, Optional

from .schemas import CostRecord, Dimension, DimensionCatalog


def distinct_values(records: Iterable[CostRecord], dimension: Dimension) -> List[str]:
    """Non-empty values of one field, de-duplicated in first-seen order."""
    seen = {}
    for r in records:
        value = r.value_of(dimension)
        if value:
            seen.setdefault(value, None)
    return list(seen)


def scoped_distinct_values(
    records: Iterable[CostRecord],
    dimension: Dimension,
    scope: Dimension,
    scope_value: Optional[str],
    sort: bool = False,
) -> List[str]:
    """distinct_values over the records whose ``scope`` field equals ``scope_value``."""
    if not scope_value:
        return []
    values = distinct_values((r for r in records if r.value_of(scope) == scope_value), dimension)
    return sorted(values) if sort else values


def instance_roles_for(records: Iterable[CostRecord], environment: Optional[str]) -> List[str]:
    return scoped_distinct_values(
        records, Dimension.INSTANCE_ROLE, Dimension.ENVIRONMENT, environment, sort=True
    )


def build_catalog(records: Iterable[CostRecord], environment: Optional[str] = None) -> DimensionCatalog:
    records = list(records)
    return DimensionCatalog(
        projects=distinct_values(records, Dimension.PROJECT),
        environment_types=distinct_values(records, Dimension.ENVIRONMENT_TYPE),
        environments=distinct_values(records, Dimension.ENVIRONMENT),
        cost_centers=distinct_values(records, Dimension.COST_CENTER),
        # roles are the one list shown alphabetically
        instance_roles=sorted(distinct_values(records, Dimension.INSTANCE_ROLE)),
        instance_roles_for_environment=instance_roles_for(records, environment),
    )

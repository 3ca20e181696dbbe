"""Per-view grouping precedence.

Every view narrows its grouping as filters narrow: with nothing selected it
buckets by its top-level organizational dimension, and once that dimension is
pinned it re-buckets by the next one down.
"""
import os
from typing import Callable, Dict, Optional, Tuple, Union

from .schemas import Dimension, FilterSpec, Granularity, ViewKind

DEFAULT_START_DATE = os.getenv("DEFAULT_START_DATE", "2025-10-01")
DEFAULT_END_DATE = os.getenv("DEFAULT_END_DATE", "2025-10-08")

ACCEPTED_FILTERS: Dict[ViewKind, Tuple[Dimension, ...]] = {
    ViewKind.PROJECT_ANALYSIS: (
        Dimension.PROJECT, Dimension.ENVIRONMENT_TYPE, Dimension.ENVIRONMENT, Dimension.INSTANCE_ROLE,
    ),
    ViewKind.COST_CENTER_ANALYSIS: (Dimension.COST_CENTER,),
    ViewKind.PRODUCT_TABLE: (Dimension.PROJECT, Dimension.ENVIRONMENT_TYPE, Dimension.ENVIRONMENT),
    ViewKind.COST_CENTER_TABLE: (Dimension.COST_CENTER,),
}

TOP_DIMENSION: Dict[ViewKind, Dimension] = {
    ViewKind.PROJECT_ANALYSIS: Dimension.PROJECT,
    ViewKind.COST_CENTER_ANALYSIS: Dimension.COST_CENTER,
    ViewKind.PRODUCT_TABLE: Dimension.PROJECT,
    ViewKind.COST_CENTER_TABLE: Dimension.COST_CENTER,
}

TABLE_VIEWS = (ViewKind.PRODUCT_TABLE, ViewKind.COST_CENTER_TABLE)


def _project_analysis(spec: FilterSpec, granularity: Granularity) -> Dimension:
    if spec.is_set(Dimension.ENVIRONMENT) and not spec.is_set(Dimension.INSTANCE_ROLE):
        return Dimension.INSTANCE_ROLE
    if not spec.is_set(Dimension.PROJECT):
        return Dimension.PROJECT
    return granularity.dimension


def _product_table(spec: FilterSpec, granularity: Granularity) -> Dimension:
    if not spec.is_set(Dimension.PROJECT):
        return Dimension.PROJECT
    return granularity.dimension


def _cost_center(spec: FilterSpec, granularity: Granularity) -> Dimension:
    if not spec.is_set(Dimension.COST_CENTER):
        return Dimension.COST_CENTER
    return Dimension.PROJECT


GROUPING_RULES: Dict[ViewKind, Callable[[FilterSpec, Granularity], Dimension]] = {
    ViewKind.PROJECT_ANALYSIS: _project_analysis,
    ViewKind.COST_CENTER_ANALYSIS: _cost_center,
    ViewKind.PRODUCT_TABLE: _product_table,
    ViewKind.COST_CENTER_TABLE: _cost_center,
}


def view_kind(view: Union[str, ViewKind]) -> ViewKind:
    try:
        return ViewKind(view)
    except ValueError:
        raise KeyError(view) from None


def grouping_for(
    view: Union[str, ViewKind],
    spec: FilterSpec,
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE,
) -> Dimension:
    return GROUPING_RULES[view_kind(view)](spec, Granularity(granularity))


def scope_filters(view: Union[str, ViewKind], spec: FilterSpec) -> FilterSpec:
    """Drop the constraints a view does not offer."""
    return spec.restricted_to(ACCEPTED_FILTERS[view_kind(view)])


def default_filters() -> FilterSpec:
    return FilterSpec(start_date=DEFAULT_START_DATE, end_date=DEFAULT_END_DATE)


def row_header(view: Union[str, ViewKind], grouping: Dimension) -> str:
    view = view_kind(view)
    if view is ViewKind.PRODUCT_TABLE:
        return "Product" if grouping is Dimension.PROJECT else "Environment"
    if view is ViewKind.COST_CENTER_TABLE:
        return "Cost Center" if grouping is Dimension.COST_CENTER else "Project"
    return grouping.label


def dashboard_filters(
    start_date: str,
    end_date: str,
    project_id: Optional[str] = None,
    cost_center: Optional[str] = None,
    environment_type: Optional[str] = None,
    environment: Optional[str] = None,
    instance_role: Optional[str] = None,
) -> FilterSpec:
    """Selections as the dashboard offers them: a role is picked within an environment."""
    spec = FilterSpec(
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        cost_center=cost_center,
        environment_type=environment_type,
    ).with_environment(environment)
    if environment and instance_role:
        spec = spec.replace(instance_role=instance_role)
    return spec

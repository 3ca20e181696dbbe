import re
import datetime as dt
import math
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"
_ISO_DATE_RE = re.compile(ISO_DATE)


class Dimension(str, Enum):
    """Filterable/groupable record fields. Values are CostRecord attribute names."""
    PROJECT = "project_id"
    COST_CENTER = "cost_center"
    ENVIRONMENT_TYPE = "environment_type"
    ENVIRONMENT = "environment"
    INSTANCE_ROLE = "instance_role"

    @property
    def label(self) -> str:
        return DIMENSION_LABELS[self]


DIMENSION_LABELS = {
    Dimension.PROJECT: "Project",
    Dimension.COST_CENTER: "Cost Center",
    Dimension.ENVIRONMENT_TYPE: "Environment Type",
    Dimension.ENVIRONMENT: "Environment",
    Dimension.INSTANCE_ROLE: "Instance Role",
}


class Granularity(str, Enum):
    ENVIRONMENT_TYPE = "environment-type"
    ENVIRONMENT = "environment"

    @property
    def dimension(self) -> Dimension:
        if self is Granularity.ENVIRONMENT:
            return Dimension.ENVIRONMENT
        return Dimension.ENVIRONMENT_TYPE


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"


class ViewKind(str, Enum):
    PROJECT_ANALYSIS = "project-analysis"
    COST_CENTER_ANALYSIS = "cost-center-analysis"
    PRODUCT_TABLE = "product-table"
    COST_CENTER_TABLE = "cost-center-table"


def is_iso_date(value: Any) -> bool:
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False
    try:
        dt.date.fromisoformat(value)
    except ValueError:
        return False
    return True


def coerce_cost(value: Any) -> float:
    """Parse a raw cost amount; anything absent, invalid or negative becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


class CostRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    date: str = Field(alias="Data")
    project_id: Optional[str] = Field(default=None, alias="project-id")
    cost_center: Optional[str] = Field(default=None, alias="cost-center")
    environment_type: Optional[str] = Field(default=None, alias="environment-type")
    environment: Optional[str] = Field(default=None, alias="environment")
    instance_role: Optional[str] = Field(default=None, alias="Instance_Role")
    instance_id: Optional[str] = Field(default=None, alias="ID_Instancia")
    cost_usd_day: float = Field(default=0.0, alias="Cost_USD_Day")

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        if not is_iso_date(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        return v

    @field_validator(
        "project_id", "cost_center", "environment_type", "environment",
        "instance_role", "instance_id", mode="before",
    )
    @classmethod
    def _as_text(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("cost_usd_day", mode="before")
    @classmethod
    def _cost(cls, v: Any) -> float:
        return coerce_cost(v)

    def value_of(self, dimension: Dimension) -> Optional[str]:
        return getattr(self, dimension.value)


class FilterSpec(BaseModel):
    """Active constraints for a view. Empty or missing values are wildcards."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_date: Optional[str] = Field(default=None, alias="startDate", pattern=ISO_DATE)
    end_date: Optional[str] = Field(default=None, alias="endDate", pattern=ISO_DATE)
    project_id: Optional[str] = Field(default=None, alias="projectId")
    cost_center: Optional[str] = Field(default=None, alias="costCenter")
    environment_type: Optional[str] = Field(default=None, alias="environmentType")
    environment: Optional[str] = Field(default=None, alias="environment")
    instance_role: Optional[str] = Field(default=None, alias="instanceRole")

    def value_for(self, dimension: Dimension) -> Optional[str]:
        return getattr(self, dimension.value)

    def is_set(self, dimension: Dimension) -> bool:
        return bool(self.value_for(dimension))

    def replace(self, **changes) -> "FilterSpec":
        return self.model_copy(update=changes)

    def with_environment(self, environment: Optional[str]) -> "FilterSpec":
        # a role only makes sense inside the environment it was picked from
        return self.replace(environment=environment, instance_role=None)

    def restricted_to(self, dimensions) -> "FilterSpec":
        dropped = {d.value: None for d in Dimension if d not in dimensions}
        return self.replace(**dropped)


class Cell(BaseModel):
    value: float = 0.0
    trend: Trend = Trend.NONE
    instance_count: int = 0


class PivotRow(BaseModel):
    key: str
    cells: Dict[str, Cell]
    total: float
    is_total: bool = False


class PivotGrid(BaseModel):
    date_axis: List[str] = []
    group_axis: List[str] = []
    rows: List[PivotRow] = []
    column_totals: Dict[str, float] = {}
    grand_total: float = 0.0

    def _group_row(self, group: str) -> Optional[PivotRow]:
        for row in self.rows:
            if not row.is_total and row.key == group:
                return row
        return None

    @property
    def total_row(self) -> Optional[PivotRow]:
        for row in self.rows:
            if row.is_total:
                return row
        return None

    def cell(self, group: str, date: str) -> Optional[Cell]:
        row = self._group_row(group)
        if row is None:
            return None
        return row.cells.get(date)

    def row_total(self, group: str) -> float:
        row = self._group_row(group)
        return row.total if row is not None else 0.0

    def column_total(self, date: str) -> float:
        return self.column_totals.get(date, 0.0)


class ChartSeries(BaseModel):
    name: str
    points: List[float]
    is_total: bool = False


class ViewSummary(BaseModel):
    total_cost: float = 0.0
    record_count: int = 0
    instance_count: int = 0
    top_level_count: int = 0
    groups: List[str] = []


class PivotView(BaseModel):
    view: ViewKind
    grouping: Optional[Dimension] = None
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE
    show_total_line: bool = True
    filters: FilterSpec
    grid: PivotGrid
    series: List[ChartSeries] = []
    summary: ViewSummary = ViewSummary()

    @computed_field
    @property
    def has_data(self) -> bool:
        return bool(self.grid.date_axis)


class DimensionCatalog(BaseModel):
    projects: List[str] = []
    environment_types: List[str] = []
    environments: List[str] = []
    cost_centers: List[str] = []
    instance_roles: List[str] = []
    instance_roles_for_environment: List[str] = []

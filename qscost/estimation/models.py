"""
Estimation Models - Project, line item and estimate result schemas.

Defines:
- Project: floor area, contingency and benchmarking classification
- LineItem: BoQ row, either catalog-backed or custom (discriminated on ``kind``)
- CostComponent: optional material/labor/plant breakdown of a line
- LineItemCalculation / CategoryTotal / ProjectEstimateTotal: calculated outputs
- BenchmarkComparison / EstimateSummary / ElementBreakdown: derived views
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

DEFAULT_CUSTOM_UNIT = "nr"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EstimationError(Exception):
    """Base class for estimating errors."""


class ProjectNotFound(EstimationError, KeyError):
    def __init__(self, project_id: str) -> None:
        super().__init__(f"project {project_id} not found")
        self.project_id = project_id


class LineItemNotFound(EstimationError, KeyError):
    def __init__(self, line_item_id: str) -> None:
        super().__init__(f"line item {line_item_id} not found")
        self.line_item_id = line_item_id


class CostComponentNotFound(EstimationError, KeyError):
    def __init__(self, component_id: str) -> None:
        super().__init__(f"cost component {component_id} not found")
        self.component_id = component_id


class CostItemNotFound(EstimationError, KeyError):
    def __init__(self, cost_item_id: int) -> None:
        super().__init__(f"cost item {cost_item_id} not found")
        self.cost_item_id = cost_item_id


class InvalidLineItem(EstimationError, ValueError):
    """Rejected input (negative cost, non-positive quantity, waste factor out of range)."""


class EstimateConsistencyError(EstimationError):
    """Independently summed totals disagree with the aggregated totals."""


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class Project(BaseModel):
    id: str
    tenant_id: str
    name: str
    floor_area_m2: Optional[float] = None
    contingency_percentage: float = Field(10.0, ge=0)
    region: Optional[str] = None
    building_age: Optional[int] = Field(None, ge=0)
    condition_rating: Optional[int] = Field(None, ge=1, le=5)
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    is_active: bool = True


class CatalogLine(BaseModel):
    """Line priced from a reference cost item."""
    kind: Literal["catalog"] = "catalog"
    cost_item_id: int
    unit_cost_override: Optional[float] = Field(None, ge=0)  # replaces material cost only


class CustomLine(BaseModel):
    """Line entered by hand; never carries management or contractor cost."""
    kind: Literal["custom"] = "custom"
    description: str = Field(..., min_length=3, max_length=255)
    unit: str = Field(DEFAULT_CUSTOM_UNIT, max_length=50)
    unit_rate: float = Field(..., ge=0)
    category_id: int


LineSource = Annotated[Union[CatalogLine, CustomLine], Field(discriminator="kind")]


class LineItem(BaseModel):
    id: str
    tenant_id: str
    project_id: str
    source: LineSource
    quantity: float = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    version_number: int = 1
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ComponentType(str, Enum):
    MATERIAL = "material"
    LABOR = "labor"
    PLANT = "plant"


class CostComponent(BaseModel):
    id: str
    tenant_id: str
    line_item_id: str
    component_type: ComponentType
    unit_rate: float = Field(..., ge=0)
    waste_factor: float = Field(1.0, ge=1.0, le=2.0)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class HistoricCostRecord(BaseModel):
    """Aggregated historic cost per m2 for one benchmarking bucket."""
    category_id: int
    region: Optional[str] = None
    building_age_range: Optional[str] = None  # "0-10", "10-20", "20-30", "30+"
    condition_rating_range: Optional[str] = None  # "1-2", "3", "4-5"
    cost_per_m2: float = Field(..., ge=0)
    sample_size: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Calculated outputs
# ---------------------------------------------------------------------------


class DataIntegrityWarning(BaseModel):
    line_item_id: str
    cost_item_id: Optional[int] = None
    code: str = "cost_item_missing"
    message: str


class LineItemCalculation(BaseModel):
    line_item_id: str
    kind: Literal["catalog", "custom"]
    cost_item_id: Optional[int] = None
    category_id: Optional[int] = None
    description: str
    quantity: float
    unit_code: str
    material_cost: float  # effective material unit cost
    management_cost: float
    contractor_cost: float
    waste_factor: float
    is_contractor_required: bool
    material_total: float
    management_total: float
    contractor_total: float
    line_total: float


class CategoryTotal(BaseModel):
    category_id: Optional[int] = None
    code: str
    name: str
    line_count: int = 0
    line_items: List[LineItemCalculation] = Field(default_factory=list)
    subtotal: float = 0.0
    contractor_items_subtotal: float = 0.0


class ProjectEstimateTotal(BaseModel):
    project_id: str
    floor_area_m2: Optional[float] = None
    categories: List[CategoryTotal] = Field(default_factory=list)
    subtotal: float = 0.0
    contingency_amount: float = 0.0
    contingency_percentage: float = 10.0
    grand_total: float = 0.0
    cost_per_area: Optional[float] = None
    contractor_cost_total: float = 0.0
    non_contractor_cost_total: float = 0.0
    warnings: List[DataIntegrityWarning] = Field(default_factory=list)


class BenchmarkComparison(BaseModel):
    project_id: str
    category_id: int
    estimated_cost_per_area: Optional[float] = None
    historic_cost_per_area: Optional[float] = None
    variance_percent: Optional[float] = None
    sample_size: Optional[int] = None
    filters: Dict[str, Optional[str]] = Field(default_factory=dict)


class EstimateSummary(BaseModel):
    project_id: str
    total_line_items: int
    total_cost: float
    contractor_cost: float
    non_contractor_cost: float
    cost_per_area: Optional[float] = None
    contingency_amount: float
    estimate_status: str = "calculated"
    warning_count: int = 0


class ElementLine(BaseModel):
    line_item_id: str
    description: str
    quantity: float
    unit_code: str
    rate: float
    line_total: float
    notes: Optional[str] = None
    components: Dict[ComponentType, CostComponent] = Field(default_factory=dict)
    component_total: Optional[float] = None


class ElementGroup(BaseModel):
    category_id: Optional[int] = None
    code: str
    name: str
    items: List[ElementLine] = Field(default_factory=list)
    subtotal: float = 0.0
    item_count: int = 0


class ElementBreakdown(BaseModel):
    project_id: str
    elements: List[ElementGroup] = Field(default_factory=list)
    total_items: int = 0
    grand_total: float = 0.0


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    floor_area_m2: Optional[float] = None
    contingency_percentage: Optional[float] = Field(None, ge=0)
    region: Optional[str] = None
    building_age: Optional[int] = Field(None, ge=0)
    condition_rating: Optional[int] = Field(None, ge=1, le=5)


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    floor_area_m2: Optional[float] = None
    contingency_percentage: Optional[float] = Field(None, ge=0)
    region: Optional[str] = None
    building_age: Optional[int] = Field(None, ge=0)
    condition_rating: Optional[int] = Field(None, ge=1, le=5)


class LineItemCreateRequest(BaseModel):
    source: LineSource
    quantity: float = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=500)


class LineItemUpdateRequest(BaseModel):
    """Partial update; an explicit ``unit_cost_override: null`` clears the override."""
    quantity: Optional[float] = Field(None, gt=0)
    unit_cost_override: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class CostComponentCreateRequest(BaseModel):
    component_type: ComponentType
    unit_rate: float = Field(..., ge=0)
    waste_factor: float = Field(1.0, ge=1.0, le=2.0)


class CostComponentUpdateRequest(BaseModel):
    unit_rate: Optional[float] = Field(None, ge=0)
    waste_factor: Optional[float] = Field(None, ge=1.0, le=2.0)

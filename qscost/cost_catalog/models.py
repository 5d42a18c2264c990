"""
Cost Catalog Models - Reference cost-item library schemas.

Defines:
- CostCategory / CostSubElement: the element hierarchy (category -> sub-element -> item)
- CostCatalogItem: priced reference item (material, management, contractor unit costs)
- CatalogSnapshot: immutable read view used for one aggregation pass
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_WASTE_FACTOR = 1.05


class CatalogSource(str, Enum):
    """Reference libraries a cost item can come from."""
    BCIS = "BCIS"
    NRM2 = "NRM2"
    SPONS = "SPONS"
    CUSTOM = "CUSTOM"


class CostCategory(BaseModel):
    """Top-level element (e.g. BCIS "Substructure")."""
    model_config = ConfigDict(frozen=True)

    id: int
    code: str
    name: str
    sort_order: int = 999


class CostSubElement(BaseModel):
    """Grouping under exactly one category."""
    model_config = ConfigDict(frozen=True)

    id: int
    category_id: int
    code: str
    name: str


class CostCatalogItem(BaseModel):
    """Single reference cost item. Read-only once seeded."""
    model_config = ConfigDict(frozen=True)

    id: int
    code: str
    description: str
    unit_code: str  # "m2", "m3", "nr", "m", ...
    material_cost: float = Field(..., ge=0)
    management_cost: float = Field(0.0, ge=0)
    contractor_cost: float = Field(0.0, ge=0)
    waste_factor: float = Field(DEFAULT_WASTE_FACTOR, ge=1.0, le=2.0)
    is_contractor_required: bool = False
    sub_element_id: int
    source: CatalogSource = CatalogSource.BCIS


class CatalogSnapshot:
    """Point-in-time view over the catalog.

    Built once per calculation so every line of a project is priced against
    the same catalog state.
    """

    def __init__(
        self,
        items: Iterable[CostCatalogItem],
        sub_elements: Iterable[CostSubElement],
        categories: Iterable[CostCategory],
    ) -> None:
        self._items: Mapping[int, CostCatalogItem] = MappingProxyType({i.id: i for i in items})
        self._sub_elements: Mapping[int, CostSubElement] = MappingProxyType({s.id: s for s in sub_elements})
        self._categories: Mapping[int, CostCategory] = MappingProxyType({c.id: c for c in categories})

    def get_cost_item(self, item_id: int) -> Optional[CostCatalogItem]:
        return self._items.get(item_id)

    def get_category_for_sub_element(self, sub_element_id: int) -> Optional[int]:
        sub_element = self._sub_elements.get(sub_element_id)
        return sub_element.category_id if sub_element else None

    def get_category(self, category_id: Optional[int]) -> Optional[CostCategory]:
        if category_id is None:
            return None
        return self._categories.get(category_id)

    @property
    def categories(self) -> Dict[int, CostCategory]:
        return dict(self._categories)

    def __len__(self) -> int:
        return len(self._items)

"""
Line Item Resolver - Normalize stored BoQ rows into priced inputs.

Catalog-backed lines take their unit costs from the catalog snapshot (material
cost replaced by the override when present). Custom lines carry only their own
unit rate: no management or contractor cost and no waste uplift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from qscost.cost_catalog.models import CatalogSnapshot
from qscost.estimation.models import (
    CatalogLine,
    CostItemNotFound,
    CustomLine,
    DataIntegrityWarning,
    InvalidLineItem,
    LineItem,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLine:
    line_item_id: str
    kind: str
    cost_item_id: Optional[int]
    category_id: Optional[int]
    description: str
    quantity: float
    unit_code: str
    material_unit_cost: float
    management_unit_cost: float
    contractor_unit_cost: float
    waste_factor: float
    contractor_required: bool


def resolve_category(line: LineItem, snapshot: CatalogSnapshot) -> Optional[int]:
    """Owning category id: the custom line's own, or the catalog item's via its sub-element."""
    source = line.source
    if isinstance(source, CustomLine):
        return source.category_id
    item = snapshot.get_cost_item(source.cost_item_id)
    if item is None:
        return None
    return snapshot.get_category_for_sub_element(item.sub_element_id)


def resolve_line(line: LineItem, snapshot: CatalogSnapshot) -> ResolvedLine:
    """Raises CostItemNotFound for a missing catalog item, InvalidLineItem for an unpriceable row."""
    source = line.source
    category_id = resolve_category(line, snapshot)

    if isinstance(source, CatalogLine):
        item = snapshot.get_cost_item(source.cost_item_id)
        if item is None:
            raise CostItemNotFound(source.cost_item_id)
        material = source.unit_cost_override if source.unit_cost_override is not None else item.material_cost
        resolved = ResolvedLine(
            line_item_id=line.id,
            kind=source.kind,
            cost_item_id=item.id,
            category_id=category_id,
            description=item.description,
            quantity=line.quantity,
            unit_code=item.unit_code,
            material_unit_cost=material,
            management_unit_cost=item.management_cost,
            contractor_unit_cost=item.contractor_cost,
            waste_factor=item.waste_factor,
            contractor_required=item.is_contractor_required,
        )
    else:
        resolved = ResolvedLine(
            line_item_id=line.id,
            kind=source.kind,
            cost_item_id=None,
            category_id=category_id,
            description=source.description,
            quantity=line.quantity,
            unit_code=source.unit,
            material_unit_cost=source.unit_rate,
            management_unit_cost=0.0,
            contractor_unit_cost=0.0,
            waste_factor=1.0,
            contractor_required=False,
        )

    if resolved.quantity <= 0:
        raise InvalidLineItem(f"line item {line.id}: quantity must be positive")
    if resolved.material_unit_cost < 0:
        raise InvalidLineItem(f"line item {line.id}: resolved unit cost must be non-negative")
    if not 1.0 <= resolved.waste_factor <= 2.0:
        raise InvalidLineItem(f"line item {line.id}: waste factor out of range")
    return resolved


def resolve_lines(
    lines: List[LineItem], snapshot: CatalogSnapshot
) -> Tuple[List[ResolvedLine], List[DataIntegrityWarning]]:
    """Resolve every active line; missing catalog items and unpriceable rows become warnings, not failures."""
    resolved: List[ResolvedLine] = []
    warnings: List[DataIntegrityWarning] = []
    for line in lines:
        if not line.is_active:
            continue
        try:
            resolved.append(resolve_line(line, snapshot))
        except CostItemNotFound as exc:
            logger.warning(
                "line item %s references missing cost item %s; excluded from totals",
                line.id,
                exc.cost_item_id,
            )
            warnings.append(
                DataIntegrityWarning(
                    line_item_id=line.id,
                    cost_item_id=exc.cost_item_id,
                    message=f"cost item {exc.cost_item_id} no longer exists in the catalog",
                )
            )
        except InvalidLineItem as exc:
            logger.warning("line item %s skipped: %s", line.id, exc)
            warnings.append(DataIntegrityWarning(line_item_id=line.id, code="line_item_invalid", message=str(exc)))
    return resolved, warnings

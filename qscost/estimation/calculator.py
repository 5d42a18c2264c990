"""Cost Calculator - per-line material/management/contractor totals."""

from __future__ import annotations

from dataclasses import dataclass

from qscost.estimation.models import LineItemCalculation
from qscost.estimation.resolver import ResolvedLine


@dataclass(frozen=True)
class LineCosts:
    material_total: float
    management_total: float
    contractor_total: float
    line_total: float


def calculate_line_costs(line: ResolvedLine) -> LineCosts:
    """
    Price one resolved line.

    Waste factor applies to material only; contractor cost is included only when
    the item requires a contractor. Inputs are assumed pre-validated.
    """
    material_total = line.material_unit_cost * line.quantity * line.waste_factor
    management_total = line.management_unit_cost * line.quantity
    contractor_total = line.contractor_unit_cost * line.quantity if line.contractor_required else 0.0
    line_total = material_total + management_total + contractor_total
    return LineCosts(
        material_total=material_total,
        management_total=management_total,
        contractor_total=contractor_total,
        line_total=line_total,
    )


def calculate_line_item(line: ResolvedLine) -> LineItemCalculation:
    costs = calculate_line_costs(line)
    return LineItemCalculation(
        line_item_id=line.line_item_id,
        kind=line.kind,
        cost_item_id=line.cost_item_id,
        category_id=line.category_id,
        description=line.description,
        quantity=line.quantity,
        unit_code=line.unit_code,
        material_cost=line.material_unit_cost,
        management_cost=line.management_unit_cost,
        contractor_cost=line.contractor_unit_cost,
        waste_factor=line.waste_factor,
        is_contractor_required=line.contractor_required,
        material_total=costs.material_total,
        management_total=costs.management_total,
        contractor_total=costs.contractor_total,
        line_total=costs.line_total,
    )


def component_total(quantity: float, unit_rate: float, waste_factor: float) -> float:
    """Total for one material/labor/plant component of a line."""
    return quantity * unit_rate * waste_factor

"""
Estimate Aggregator - category roll-up and project totals.

Lines are bucketed by their resolved category. A line whose category is
missing or unknown to the catalog lands in the "Other Items" bucket so the
category subtotals always reconcile with the project subtotal.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from qscost.cost_catalog.models import CatalogSnapshot
from qscost.estimation.models import (
    CategoryTotal,
    DataIntegrityWarning,
    EstimateConsistencyError,
    LineItemCalculation,
    ProjectEstimateTotal,
)

logger = logging.getLogger(__name__)

UNCLASSIFIED_CODE = "OTHER"
UNCLASSIFIED_NAME = "Other Items"

_REL_TOLERANCE = 1e-6
_ABS_TOLERANCE = 1e-6


def _sort_key(total: CategoryTotal):
    # unclassified bucket always last
    return (total.category_id is None, total.code)


def aggregate_categories(
    calculations: List[LineItemCalculation], snapshot: CatalogSnapshot
) -> List[CategoryTotal]:
    """Group line results by category, ordered by category code."""
    buckets: Dict[Optional[int], CategoryTotal] = {}
    for calc in calculations:
        category = snapshot.get_category(calc.category_id)
        key = category.id if category else None
        bucket = buckets.get(key)
        if bucket is None:
            if category is None:
                if calc.category_id is not None:
                    logger.warning(
                        "line item %s resolved to unknown category %s; grouped as %s",
                        calc.line_item_id,
                        calc.category_id,
                        UNCLASSIFIED_CODE,
                    )
                bucket = CategoryTotal(category_id=None, code=UNCLASSIFIED_CODE, name=UNCLASSIFIED_NAME)
            else:
                bucket = CategoryTotal(category_id=category.id, code=category.code, name=category.name)
            buckets[key] = bucket
        bucket.line_items.append(calc)
        bucket.line_count += 1
        bucket.subtotal += calc.line_total
        bucket.contractor_items_subtotal += calc.contractor_total
    return sorted(buckets.values(), key=_sort_key)


def _check_contractor_split(
    categories: List[CategoryTotal], non_contractor_cost_total: float
) -> None:
    independent = sum(
        calc.material_total + calc.management_total
        for category in categories
        for calc in category.line_items
    )
    if not math.isclose(independent, non_contractor_cost_total, rel_tol=_REL_TOLERANCE, abs_tol=_ABS_TOLERANCE):
        raise EstimateConsistencyError(
            f"non-contractor total {non_contractor_cost_total!r} does not match "
            f"material+management sum {independent!r}"
        )


def aggregate_project_total(
    project_id: str,
    categories: List[CategoryTotal],
    contingency_percentage: float,
    floor_area_m2: Optional[float] = None,
    warnings: Optional[List[DataIntegrityWarning]] = None,
) -> ProjectEstimateTotal:
    subtotal = sum(category.subtotal for category in categories)
    contingency_amount = subtotal * (contingency_percentage / 100)
    grand_total = subtotal + contingency_amount
    cost_per_area = grand_total / floor_area_m2 if floor_area_m2 and floor_area_m2 > 0 else None

    contractor_cost_total = sum(category.contractor_items_subtotal for category in categories)
    non_contractor_cost_total = subtotal - contractor_cost_total
    _check_contractor_split(categories, non_contractor_cost_total)

    return ProjectEstimateTotal(
        project_id=project_id,
        floor_area_m2=floor_area_m2,
        categories=categories,
        subtotal=subtotal,
        contingency_amount=contingency_amount,
        contingency_percentage=contingency_percentage,
        grand_total=grand_total,
        cost_per_area=cost_per_area,
        contractor_cost_total=contractor_cost_total,
        non_contractor_cost_total=non_contractor_cost_total,
        warnings=list(warnings or []),
    )

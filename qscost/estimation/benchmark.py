"""
Benchmark Comparator - estimated vs historic cost per m2 for one category.

Best effort: every missing input turns into nulls on the comparison rather
than an error.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from qscost.estimation.models import BenchmarkComparison, HistoricCostRecord, Project

logger = logging.getLogger(__name__)


def age_band(building_age: Optional[int]) -> Optional[str]:
    if building_age is None:
        return None
    if building_age < 10:
        return "0-10"
    if building_age < 20:
        return "10-20"
    if building_age < 30:
        return "20-30"
    return "30+"


def condition_band(condition_rating: Optional[int]) -> Optional[str]:
    if condition_rating is None:
        return None
    if condition_rating <= 2:
        return "1-2"
    if condition_rating == 3:
        return "3"
    return "4-5"


def benchmark_filters(project: Project) -> Dict[str, Optional[str]]:
    return {
        "region": project.region,
        "age_band": age_band(project.building_age),
        "condition_band": condition_band(project.condition_rating),
    }


def select_best_record(
    records: Iterable[HistoricCostRecord], min_sample_size: int
) -> Optional[HistoricCostRecord]:
    """Largest reliable sample wins; ties keep the first record seen."""
    best: Optional[HistoricCostRecord] = None
    for record in records:
        if record.sample_size < min_sample_size:
            continue
        if best is None or record.sample_size > best.sample_size:
            best = record
    return best


def compare(
    project: Project,
    category_id: int,
    category_subtotal: Optional[float],
    record: Optional[HistoricCostRecord],
) -> BenchmarkComparison:
    comparison = BenchmarkComparison(
        project_id=project.id,
        category_id=category_id,
        filters=benchmark_filters(project),
    )
    floor_area = project.floor_area_m2
    if not floor_area or floor_area <= 0:
        logger.info("benchmark skipped for project %s: no floor area", project.id)
        return comparison
    if category_subtotal is None:
        logger.info("benchmark skipped for project %s: no lines in category %s", project.id, category_id)
        return comparison

    comparison.estimated_cost_per_area = category_subtotal / floor_area
    if record is None:
        logger.info("no reliable historic data for project %s category %s", project.id, category_id)
        return comparison

    comparison.historic_cost_per_area = record.cost_per_m2
    comparison.sample_size = record.sample_size
    if record.cost_per_m2 > 0:
        comparison.variance_percent = (
            (comparison.estimated_cost_per_area - record.cost_per_m2) / record.cost_per_m2 * 100
        )
    return comparison

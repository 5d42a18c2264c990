"""
Estimation Service - project estimate calculation.

Pipeline per call: one catalog snapshot + the project's active line items
-> resolver -> calculator -> category aggregator -> project total.
Read-only; writes go through the ledger.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from qscost.common.identity import RequestContext
from qscost.config import runtime_config
from qscost.cost_catalog.models import CatalogSnapshot
from qscost.cost_catalog.repository import CostCatalogRepository, get_catalog_repo
from qscost.estimation import aggregator, benchmark
from qscost.estimation.calculator import calculate_line_item, component_total
from qscost.estimation.models import (
    BenchmarkComparison,
    CategoryTotal,
    DataIntegrityWarning,
    ElementBreakdown,
    ElementGroup,
    ElementLine,
    EstimateSummary,
    LineItem,
    LineItemCalculation,
    Project,
    ProjectEstimateTotal,
    ProjectNotFound,
)
from qscost.estimation.repository import (
    EstimationRepository,
    HistoricCostRepository,
    get_estimation_repo,
    get_historic_repo,
)
from qscost.estimation.resolver import resolve_lines

logger = logging.getLogger(__name__)


class EstimationService:
    def __init__(
        self,
        repo: Optional[EstimationRepository] = None,
        catalog_repo: Optional[CostCatalogRepository] = None,
        historic_repo: Optional[HistoricCostRepository] = None,
        min_sample_size: Optional[int] = None,
    ) -> None:
        self.repo = repo or get_estimation_repo()
        self.catalog_repo = catalog_repo or get_catalog_repo()
        self.historic_repo = historic_repo or get_historic_repo()
        self.min_sample_size = (
            min_sample_size if min_sample_size is not None else runtime_config.get_benchmark_min_sample_size()
        )

    def _require_project(self, ctx: RequestContext, project_id: str) -> Project:
        project = self.repo.get_project(ctx.tenant_id, project_id)
        if project is None or not project.is_active:
            raise ProjectNotFound(project_id)
        return project

    def _calculate(
        self, ctx: RequestContext, project_id: str, snapshot: CatalogSnapshot
    ) -> Tuple[List[LineItem], List[LineItemCalculation], List[DataIntegrityWarning]]:
        lines = self.repo.list_line_items(ctx.tenant_id, project_id)
        resolved, warnings = resolve_lines(lines, snapshot)
        return lines, [calculate_line_item(r) for r in resolved], warnings

    def calculate_line_items(self, ctx: RequestContext, project_id: str) -> List[LineItemCalculation]:
        """Per-line costs for the project's active lines (lines with missing catalog items are skipped)."""
        _, calculations, _ = self._calculate(ctx, project_id, self.catalog_repo.snapshot())
        return calculations

    def calculate_category_totals(
        self,
        ctx: RequestContext,
        project_id: str,
        calculations: Optional[List[LineItemCalculation]] = None,
    ) -> List[CategoryTotal]:
        snapshot = self.catalog_repo.snapshot()
        if calculations is None:
            _, calculations, _ = self._calculate(ctx, project_id, snapshot)
        return aggregator.aggregate_categories(calculations, snapshot)

    def _project_total(
        self, ctx: RequestContext, project: Project
    ) -> Tuple[ProjectEstimateTotal, List[LineItem], CatalogSnapshot]:
        snapshot = self.catalog_repo.snapshot()
        lines, calculations, warnings = self._calculate(ctx, project.id, snapshot)
        categories = aggregator.aggregate_categories(calculations, snapshot)
        total = aggregator.aggregate_project_total(
            project.id,
            categories,
            contingency_percentage=project.contingency_percentage,
            floor_area_m2=project.floor_area_m2,
            warnings=warnings,
        )
        return total, lines, snapshot

    def calculate_project_total(self, ctx: RequestContext, project_id: str) -> ProjectEstimateTotal:
        project = self._require_project(ctx, project_id)
        total, _, _ = self._project_total(ctx, project)
        logger.debug(
            "project %s estimated: subtotal=%s grand_total=%s warnings=%d",
            project_id,
            total.subtotal,
            total.grand_total,
            len(total.warnings),
        )
        return total

    def compare_to_historic_data(
        self, ctx: RequestContext, project_id: str, category_id: int
    ) -> BenchmarkComparison:
        """Never raises: unknown project, missing data or lookup failures all yield null fields."""
        try:
            project = self.repo.get_project(ctx.tenant_id, project_id)
            if project is None or not project.is_active:
                logger.info("benchmark requested for unknown project %s", project_id)
                return BenchmarkComparison(project_id=project_id, category_id=category_id)
            if not project.floor_area_m2 or project.floor_area_m2 <= 0:
                return benchmark.compare(project, category_id, None, None)
            total, _, _ = self._project_total(ctx, project)
            category = next((c for c in total.categories if c.category_id == category_id), None)
            if category is None:
                return benchmark.compare(project, category_id, None, None)
            filters = benchmark.benchmark_filters(project)
            records = self.historic_repo.query_historic(
                category_id,
                region=filters["region"],
                age_band=filters["age_band"],
                condition_band=filters["condition_band"],
            )
            record = benchmark.select_best_record(records, self.min_sample_size)
            return benchmark.compare(project, category_id, category.subtotal, record)
        except Exception:
            logger.exception("benchmark comparison failed for project %s category %s", project_id, category_id)
            return BenchmarkComparison(project_id=project_id, category_id=category_id)

    def get_estimate_summary(self, ctx: RequestContext, project_id: str) -> EstimateSummary:
        project = self._require_project(ctx, project_id)
        total, _, _ = self._project_total(ctx, project)
        return EstimateSummary(
            project_id=project_id,
            total_line_items=sum(c.line_count for c in total.categories),
            total_cost=total.grand_total,
            contractor_cost=total.contractor_cost_total,
            non_contractor_cost=total.non_contractor_cost_total,
            cost_per_area=total.cost_per_area,
            contingency_amount=total.contingency_amount,
            warning_count=len(total.warnings),
        )

    def calculate_element_breakdown(self, ctx: RequestContext, project_id: str) -> ElementBreakdown:
        """Element-grouped detail view; component totals are informational and never change subtotals."""
        project = self._require_project(ctx, project_id)
        total, lines, _ = self._project_total(ctx, project)
        by_id: Dict[str, LineItem] = {line.id: line for line in lines}

        elements: List[ElementGroup] = []
        for category in total.categories:
            group = ElementGroup(
                category_id=category.category_id,
                code=category.code,
                name=category.name,
                subtotal=category.subtotal,
                item_count=category.line_count,
            )
            for calc in category.line_items:
                components = self.repo.list_cost_components(ctx.tenant_id, calc.line_item_id)
                line = by_id.get(calc.line_item_id)
                group.items.append(
                    ElementLine(
                        line_item_id=calc.line_item_id,
                        description=calc.description,
                        quantity=calc.quantity,
                        unit_code=calc.unit_code,
                        rate=calc.line_total / calc.quantity,
                        line_total=calc.line_total,
                        notes=line.notes if line else None,
                        components={c.component_type: c for c in components},
                        component_total=(
                            sum(component_total(calc.quantity, c.unit_rate, c.waste_factor) for c in components)
                            if components
                            else None
                        ),
                    )
                )
            elements.append(group)

        return ElementBreakdown(
            project_id=project_id,
            elements=elements,
            total_items=sum(group.item_count for group in elements),
            grand_total=total.subtotal,
        )


_default_service: Optional[EstimationService] = None


def get_estimation_service() -> EstimationService:
    global _default_service
    if _default_service is None:
        _default_service = EstimationService()
    return _default_service


def set_estimation_service(service: Optional[EstimationService]) -> None:
    global _default_service
    _default_service = service

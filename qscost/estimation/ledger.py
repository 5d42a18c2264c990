"""
Estimate Ledger - project, line item and cost component writes.

All inputs are validated here so the calculation pipeline only ever sees
positive quantities, non-negative costs and waste factors in [1.0, 2.0].
Removal is always a soft delete.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from qscost.common.identity import RequestContext
from qscost.config import runtime_config
from qscost.cost_catalog.repository import CostCatalogRepository, get_catalog_repo
from qscost.estimation.models import (
    CatalogLine,
    CostComponent,
    CostComponentCreateRequest,
    CostComponentNotFound,
    CostComponentUpdateRequest,
    CostItemNotFound,
    InvalidLineItem,
    LineItem,
    LineItemCreateRequest,
    LineItemNotFound,
    LineItemUpdateRequest,
    Project,
    ProjectCreateRequest,
    ProjectNotFound,
    ProjectUpdateRequest,
)
from qscost.estimation.repository import EstimationRepository, get_estimation_repo

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EstimateLedger:
    def __init__(
        self,
        repo: Optional[EstimationRepository] = None,
        catalog_repo: Optional[CostCatalogRepository] = None,
    ) -> None:
        self.repo = repo or get_estimation_repo()
        self.catalog_repo = catalog_repo or get_catalog_repo()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, ctx: RequestContext, request: ProjectCreateRequest) -> Project:
        contingency = request.contingency_percentage
        if contingency is None:
            contingency = runtime_config.get_default_contingency_percentage()
        project = Project(
            id=uuid.uuid4().hex,
            tenant_id=ctx.tenant_id,
            name=request.name,
            floor_area_m2=request.floor_area_m2,
            contingency_percentage=contingency,
            region=request.region,
            building_age=request.building_age,
            condition_rating=request.condition_rating,
            created_by=ctx.user_id,
        )
        logger.info("project %s created for tenant %s", project.id, ctx.tenant_id)
        return self.repo.save_project(project)

    def get_project(self, ctx: RequestContext, project_id: str) -> Project:
        project = self.repo.get_project(ctx.tenant_id, project_id)
        if project is None or not project.is_active:
            raise ProjectNotFound(project_id)
        return project

    def list_projects(self, ctx: RequestContext) -> List[Project]:
        return [p for p in self.repo.list_projects(ctx.tenant_id) if p.is_active]

    def remove_project(self, ctx: RequestContext, project_id: str) -> Project:
        """Soft delete; line items are left in place and become unreachable with the project."""
        project = self.get_project(ctx, project_id)
        removed = project.model_copy(update={"is_active": False, "updated_at": _now()})
        logger.info("project %s soft-deleted by %s", project_id, ctx.user_id)
        return self.repo.save_project(removed)

    def update_project(self, ctx: RequestContext, project_id: str, request: ProjectUpdateRequest) -> Project:
        project = self.get_project(ctx, project_id)
        updates = request.model_dump(exclude_unset=True)
        if updates.get("name", "") is None:
            raise InvalidLineItem("project name cannot be cleared")
        if "contingency_percentage" in updates and updates["contingency_percentage"] is None:
            updates["contingency_percentage"] = runtime_config.get_default_contingency_percentage()
        updates["updated_at"] = _now()
        return self.repo.save_project(project.model_copy(update=updates))

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def _require_line(self, ctx: RequestContext, project_id: str, line_item_id: str) -> LineItem:
        self.get_project(ctx, project_id)
        line = self.repo.get_line_item(ctx.tenant_id, line_item_id)
        if line is None or line.project_id != project_id or not line.is_active:
            raise LineItemNotFound(line_item_id)
        return line

    def get_line_item(self, ctx: RequestContext, project_id: str, line_item_id: str) -> LineItem:
        return self._require_line(ctx, project_id, line_item_id)

    def add_line_item(self, ctx: RequestContext, project_id: str, request: LineItemCreateRequest) -> LineItem:
        self.get_project(ctx, project_id)
        source = request.source
        if isinstance(source, CatalogLine) and self.catalog_repo.get_item(source.cost_item_id) is None:
            raise CostItemNotFound(source.cost_item_id)
        line = LineItem(
            id=uuid.uuid4().hex,
            tenant_id=ctx.tenant_id,
            project_id=project_id,
            source=source,
            quantity=request.quantity,
            notes=request.notes,
            created_by=ctx.user_id,
        )
        logger.info("line item %s (%s) added to project %s", line.id, source.kind, project_id)
        return self.repo.save_line_item(line)

    def update_line_item(
        self, ctx: RequestContext, project_id: str, line_item_id: str, request: LineItemUpdateRequest
    ) -> LineItem:
        line = self._require_line(ctx, project_id, line_item_id)
        fields = request.model_fields_set
        updates = {}
        if "quantity" in fields:
            if request.quantity is None:
                raise InvalidLineItem("quantity cannot be cleared")
            updates["quantity"] = request.quantity
        if "notes" in fields:
            updates["notes"] = request.notes
        if "unit_cost_override" in fields:
            if not isinstance(line.source, CatalogLine):
                raise InvalidLineItem("unit_cost_override applies to catalog-backed lines only")
            updates["source"] = line.source.model_copy(update={"unit_cost_override": request.unit_cost_override})
        if not updates:
            return line
        updates["version_number"] = line.version_number + 1
        updates["updated_at"] = _now()
        return self.repo.save_line_item(line.model_copy(update=updates))

    def remove_line_item(self, ctx: RequestContext, project_id: str, line_item_id: str) -> LineItem:
        line = self._require_line(ctx, project_id, line_item_id)
        removed = line.model_copy(update={"is_active": False, "updated_at": _now()})
        logger.info("line item %s soft-deleted from project %s", line_item_id, project_id)
        return self.repo.save_line_item(removed)

    def list_line_items(
        self, ctx: RequestContext, project_id: str, include_inactive: bool = False
    ) -> List[LineItem]:
        self.get_project(ctx, project_id)
        return self.repo.list_line_items(ctx.tenant_id, project_id, include_inactive=include_inactive)

    # ------------------------------------------------------------------
    # Cost components
    # ------------------------------------------------------------------

    def _require_component(self, ctx: RequestContext, line_item_id: str, component_id: str) -> CostComponent:
        component = self.repo.get_cost_component(ctx.tenant_id, component_id)
        if component is None or component.line_item_id != line_item_id or not component.is_active:
            raise CostComponentNotFound(component_id)
        return component

    def add_cost_component(
        self, ctx: RequestContext, project_id: str, line_item_id: str, request: CostComponentCreateRequest
    ) -> CostComponent:
        self._require_line(ctx, project_id, line_item_id)
        existing = self.repo.list_cost_components(ctx.tenant_id, line_item_id)
        if any(c.component_type == request.component_type for c in existing):
            raise InvalidLineItem(f"line item already has an active {request.component_type.value} component")
        component = CostComponent(
            id=uuid.uuid4().hex,
            tenant_id=ctx.tenant_id,
            line_item_id=line_item_id,
            component_type=request.component_type,
            unit_rate=request.unit_rate,
            waste_factor=request.waste_factor,
        )
        return self.repo.save_cost_component(component)

    def update_cost_component(
        self,
        ctx: RequestContext,
        project_id: str,
        line_item_id: str,
        component_id: str,
        request: CostComponentUpdateRequest,
    ) -> CostComponent:
        self._require_line(ctx, project_id, line_item_id)
        component = self._require_component(ctx, line_item_id, component_id)
        updates = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
        if not updates:
            return component
        updates["updated_at"] = _now()
        return self.repo.save_cost_component(component.model_copy(update=updates))

    def remove_cost_component(
        self, ctx: RequestContext, project_id: str, line_item_id: str, component_id: str
    ) -> CostComponent:
        self._require_line(ctx, project_id, line_item_id)
        component = self._require_component(ctx, line_item_id, component_id)
        return self.repo.save_cost_component(
            component.model_copy(update={"is_active": False, "updated_at": _now()})
        )

    def list_cost_components(self, ctx: RequestContext, project_id: str, line_item_id: str) -> List[CostComponent]:
        self._require_line(ctx, project_id, line_item_id)
        return self.repo.list_cost_components(ctx.tenant_id, line_item_id)


_default_ledger: Optional[EstimateLedger] = None


def get_estimate_ledger() -> EstimateLedger:
    global _default_ledger
    if _default_ledger is None:
        _default_ledger = EstimateLedger()
    return _default_ledger


def set_estimate_ledger(ledger: Optional[EstimateLedger]) -> None:
    global _default_ledger
    _default_ledger = ledger

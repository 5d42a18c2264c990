"""FastAPI routes for project estimates, summaries, element views and benchmarks."""
from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, Query

from qscost.common.error_envelope import error_response, not_found_error
from qscost.common.identity import ADMIN_ROLES, READ_ROLES, WRITE_ROLES, RequestContext, get_request_context
from qscost.estimation.ledger import get_estimate_ledger
from qscost.estimation.models import (
    BenchmarkComparison,
    CostComponent,
    CostComponentCreateRequest,
    CostComponentNotFound,
    CostComponentUpdateRequest,
    CostItemNotFound,
    ElementBreakdown,
    EstimateConsistencyError,
    EstimateSummary,
    EstimationError,
    InvalidLineItem,
    LineItem,
    LineItemCreateRequest,
    LineItemNotFound,
    LineItemUpdateRequest,
    Project,
    ProjectCreateRequest,
    ProjectEstimateTotal,
    ProjectNotFound,
    ProjectUpdateRequest,
)
from qscost.estimation.service import get_estimation_service
from qscost.identity.auth import get_auth_context, require_tenant_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["estimation"])


def _raise_http(exc: EstimationError) -> NoReturn:
    if isinstance(exc, ProjectNotFound):
        not_found_error("project", exc.project_id)
    if isinstance(exc, LineItemNotFound):
        not_found_error("line_item", exc.line_item_id)
    if isinstance(exc, CostComponentNotFound):
        not_found_error("cost_component", exc.component_id)
    if isinstance(exc, CostItemNotFound):
        error_response(
            code="cost_item.not_found",
            message=f"cost item {exc.cost_item_id} not found",
            status_code=400,
            resource_kind="cost_item",
            details={"id": exc.cost_item_id},
        )
    if isinstance(exc, InvalidLineItem):
        error_response(code="line_item.invalid", message=str(exc), status_code=400, resource_kind="line_item")
    if isinstance(exc, EstimateConsistencyError):
        logger.error("estimate consistency check failed: %s", exc)
        error_response(code="estimate.inconsistent", message=str(exc), status_code=500, resource_kind="project")
    error_response(code="estimation.error", message=str(exc), status_code=400)


# ===== Projects =====

@router.post("", response_model=Project)
def create_project(
    payload: ProjectCreateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    return get_estimate_ledger().create_project(context, payload)


@router.get("", response_model=list[Project])
def list_projects(
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    return get_estimate_ledger().list_projects(context)


@router.get("/{project_id}", response_model=Project)
def get_project(
    project_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimate_ledger().get_project(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.patch("/{project_id}", response_model=Project)
def update_project(
    project_id: str,
    payload: ProjectUpdateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().update_project(context, project_id, payload)
    except EstimationError as exc:
        _raise_http(exc)


@router.delete("/{project_id}", response_model=Project)
def remove_project(
    project_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, ADMIN_ROLES)
    try:
        return get_estimate_ledger().remove_project(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)


# ===== Line items =====

@router.get("/{project_id}/estimates")
def list_estimates(
    project_id: str,
    include_inactive: bool = Query(False),
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        items = get_estimate_ledger().list_line_items(context, project_id, include_inactive=include_inactive)
        totals = get_estimation_service().calculate_project_total(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)
    return {"items": items, "totals": totals}


@router.post("/{project_id}/estimates", response_model=LineItem, status_code=201)
def add_estimate(
    project_id: str,
    payload: LineItemCreateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().add_line_item(context, project_id, payload)
    except EstimationError as exc:
        _raise_http(exc)


@router.get("/{project_id}/estimates/{line_item_id}", response_model=LineItem)
def get_estimate(
    project_id: str,
    line_item_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimate_ledger().get_line_item(context, project_id, line_item_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.put("/{project_id}/estimates/{line_item_id}", response_model=LineItem)
def update_estimate(
    project_id: str,
    line_item_id: str,
    payload: LineItemUpdateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().update_line_item(context, project_id, line_item_id, payload)
    except EstimationError as exc:
        _raise_http(exc)


@router.delete("/{project_id}/estimates/{line_item_id}", response_model=LineItem)
def remove_estimate(
    project_id: str,
    line_item_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().remove_line_item(context, project_id, line_item_id)
    except EstimationError as exc:
        _raise_http(exc)


# ===== Calculated views =====

@router.get("/{project_id}/estimate-summary", response_model=ProjectEstimateTotal)
def estimate_summary(
    project_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimation_service().calculate_project_total(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.get("/{project_id}/estimate-summary/brief", response_model=EstimateSummary)
def estimate_summary_brief(
    project_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimation_service().get_estimate_summary(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.get("/{project_id}/elements", response_model=ElementBreakdown)
def element_breakdown(
    project_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimation_service().calculate_element_breakdown(context, project_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.get("/{project_id}/benchmarks/{category_id}", response_model=BenchmarkComparison)
def benchmark(
    project_id: str,
    category_id: int,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    return get_estimation_service().compare_to_historic_data(context, project_id, category_id)


# ===== Cost components =====

@router.get("/{project_id}/estimates/{line_item_id}/cost-components", response_model=list[CostComponent])
def list_cost_components(
    project_id: str,
    line_item_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    try:
        return get_estimate_ledger().list_cost_components(context, project_id, line_item_id)
    except EstimationError as exc:
        _raise_http(exc)


@router.post(
    "/{project_id}/estimates/{line_item_id}/cost-components", response_model=CostComponent, status_code=201
)
def add_cost_component(
    project_id: str,
    line_item_id: str,
    payload: CostComponentCreateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().add_cost_component(context, project_id, line_item_id, payload)
    except EstimationError as exc:
        _raise_http(exc)


@router.patch(
    "/{project_id}/estimates/{line_item_id}/cost-components/{component_id}", response_model=CostComponent
)
def update_cost_component(
    project_id: str,
    line_item_id: str,
    component_id: str,
    payload: CostComponentUpdateRequest,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().update_cost_component(context, project_id, line_item_id, component_id, payload)
    except EstimationError as exc:
        _raise_http(exc)


@router.delete(
    "/{project_id}/estimates/{line_item_id}/cost-components/{component_id}", response_model=CostComponent
)
def remove_cost_component(
    project_id: str,
    line_item_id: str,
    component_id: str,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, WRITE_ROLES)
    try:
        return get_estimate_ledger().remove_cost_component(context, project_id, line_item_id, component_id)
    except EstimationError as exc:
        _raise_http(exc)

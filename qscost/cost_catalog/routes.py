"""Read-only browse routes over the reference cost catalog."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from qscost.common.error_envelope import not_found_error
from qscost.common.identity import READ_ROLES, RequestContext, get_request_context
from qscost.cost_catalog.models import CatalogSource, CostCatalogItem, CostCategory
from qscost.cost_catalog.repository import get_catalog_repo
from qscost.identity.auth import get_auth_context, require_tenant_role

router = APIRouter(tags=["cost-catalog"])


@router.get("/cost-items")
def list_cost_items(
    category_id: Optional[int] = None,
    sub_element_id: Optional[int] = None,
    source: Optional[CatalogSource] = None,
    search: Optional[str] = Query(None, min_length=2),
    limit: int = Query(200, ge=1, le=500),
    offset: int = Query(0, ge=0),
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    items = get_catalog_repo().list_items(
        category_id=category_id,
        sub_element_id=sub_element_id,
        source=source,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"items": items}


@router.get("/cost-items/{item_id}", response_model=CostCatalogItem)
def get_cost_item(
    item_id: int,
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    item = get_catalog_repo().get_item(item_id)
    if item is None:
        not_found_error("cost_item", item_id)
    return item


@router.get("/cost-categories", response_model=list[CostCategory])
def list_cost_categories(
    context: RequestContext = Depends(get_request_context),
    auth=Depends(get_auth_context),
):
    require_tenant_role(auth, context.tenant_id, READ_ROLES)
    return get_catalog_repo().list_categories()

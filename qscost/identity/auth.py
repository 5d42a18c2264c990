"""Bearer-token dependency and tenant role checks for estimating routes."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import Header, HTTPException

from qscost.identity.jwt_service import AuthContext, default_jwt_service

logger = logging.getLogger(__name__)


def get_auth_context(authorization: Optional[str] = Header(default=None)) -> AuthContext:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="missing bearer token")
    try:
        return default_jwt_service().decode_token(token.strip())
    except RuntimeError as exc:
        # signing secret missing or unreadable config
        logger.error("token verification unavailable: %s", exc)
        raise HTTPException(status_code=401, detail=f"invalid token: {exc}") from exc
    except Exception as exc:
        raise HTTPException(status_code=401, detail=f"invalid token: {exc}") from exc


def require_tenant_membership(ctx: AuthContext, tenant_id: str) -> None:
    if tenant_id not in ctx.tenant_ids:
        logger.info("user %s denied: not a member of %s", ctx.user_id, tenant_id)
        raise HTTPException(status_code=403, detail="tenant membership required")


def require_tenant_role(ctx: AuthContext, tenant_id: str, allowed_roles: Iterable[str]) -> None:
    require_tenant_membership(ctx, tenant_id)
    if ctx.role_for(tenant_id) not in set(allowed_roles):
        raise HTTPException(status_code=403, detail="insufficient role for tenant")

"""Request context for tenant-scoped estimating calls."""
from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Header, HTTPException

from qscost.config import runtime_config

VALID_TENANT_PATTERN = re.compile(r"^t_[a-z0-9_-]+$")
READ_ROLES = frozenset({"admin", "estimator", "viewer"})
WRITE_ROLES = frozenset({"admin", "estimator"})
ADMIN_ROLES = frozenset({"admin"})


@dataclass
class RequestContext:
    tenant_id: str
    env: Optional[str] = None
    user_id: Optional[str] = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not self.tenant_id:
            raise ValueError("tenant_id is required")
        if not VALID_TENANT_PATTERN.match(self.tenant_id):
            raise ValueError(
                f"tenant_id must match pattern ^t_[a-z0-9_-]+$, got: {self.tenant_id}"
            )
        if not self.request_id:
            raise ValueError("request_id is required")
        self.env = (self.env or runtime_config.get_env() or "dev").lower()


def get_request_context(
    header_tenant: Optional[str] = Header(default=None, alias="X-Tenant-Id"),
    header_user: Optional[str] = Header(default=None, alias="X-User-Id"),
    header_request_id: Optional[str] = Header(default=None, alias="X-Request-Id"),
) -> RequestContext:
    if not header_tenant:
        raise HTTPException(status_code=400, detail="X-Tenant-Id header is required")
    try:
        return RequestContext(
            tenant_id=header_tenant,
            user_id=header_user,
            request_id=header_request_id or uuid.uuid4().hex,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

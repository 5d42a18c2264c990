"""HS256 bearer tokens carrying a per-tenant estimating role map.

Claims: ``sub`` (user id), ``email``, ``role_map`` ({tenant_id: role}),
optional ``tenant_ids`` / ``default_tenant_id`` and ``exp`` (epoch seconds).
"""
from __future__ import annotations

import base64
import hmac
import json
import time
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, Dict, List, Optional

from qscost.config import runtime_config

DEFAULT_TOKEN_TTL_SECONDS = 8 * 3600


def _encode_segment(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _decode_segment(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _json_segment(payload: Dict[str, Any]) -> str:
    return _encode_segment(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode())


@dataclass
class AuthContext:
    user_id: str
    email: str
    tenant_ids: List[str]
    default_tenant_id: str
    role_map: Dict[str, str]
    claims: Dict[str, Any] = field(default_factory=dict)

    def role_for(self, tenant_id: str) -> Optional[str]:
        if tenant_id not in self.tenant_ids:
            return None
        return self.role_map.get(tenant_id)


class JwtService:
    def __init__(self, secret: Optional[str] = None) -> None:
        self._secret = secret

    def _key(self) -> bytes:
        secret = self._secret or runtime_config.get_jwt_signing_secret()
        if not secret:
            raise RuntimeError("AUTH_JWT_SIGNING is not configured")
        return secret.encode("utf-8")

    def _sign(self, signing_input: str) -> bytes:
        return hmac.new(self._key(), signing_input.encode("utf-8"), sha256).digest()

    def issue_token(self, claims: Dict[str, object]) -> str:
        signing_input = _json_segment({"alg": "HS256", "typ": "JWT"}) + "." + _json_segment(claims)
        return signing_input + "." + _encode_segment(self._sign(signing_input))

    def issue_user_token(
        self,
        user_id: str,
        email: str,
        role_map: Dict[str, str],
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    ) -> str:
        tenant_ids = sorted(role_map)
        return self.issue_token(
            {
                "sub": user_id,
                "email": email,
                "role_map": dict(role_map),
                "tenant_ids": tenant_ids,
                "default_tenant_id": tenant_ids[0] if tenant_ids else "",
                "exp": int(time.time()) + ttl_seconds,
            }
        )

    def decode_token(self, token: str) -> AuthContext:
        try:
            header_b64, payload_b64, sig_b64 = token.split(".")
        except ValueError:
            raise ValueError("invalid token")
        if not hmac.compare_digest(self._sign(header_b64 + "." + payload_b64), _decode_segment(sig_b64)):
            raise ValueError("invalid signature")
        payload = json.loads(_decode_segment(payload_b64))
        exp = payload.get("exp")
        if exp is not None and float(exp) < time.time():
            raise ValueError("token expired")
        role_map = payload.get("role_map", {})
        tenant_ids = payload.get("tenant_ids") or sorted(role_map)
        return AuthContext(
            user_id=payload["sub"],
            email=payload.get("email", ""),
            tenant_ids=tenant_ids,
            default_tenant_id=payload.get("default_tenant_id", ""),
            role_map=role_map,
            claims=payload,
        )


def default_jwt_service() -> JwtService:
    return JwtService()

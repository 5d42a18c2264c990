import pytest
from fastapi import HTTPException

from qscost.common.identity import READ_ROLES, WRITE_ROLES
from qscost.identity.auth import get_auth_context, require_tenant_membership, require_tenant_role
from qscost.identity.jwt_service import AuthContext, JwtService


def _ctx(role: str = "estimator") -> AuthContext:
    return AuthContext(
        user_id="u1",
        email="qs@example.com",
        tenant_ids=["t_a"],
        default_tenant_id="t_a",
        role_map={"t_a": role},
    )


def test_token_round_trip():
    svc = JwtService(secret="unit-test-secret")
    token = svc.issue_token(
        {"sub": "u1", "email": "qs@example.com", "tenant_ids": ["t_a"], "role_map": {"t_a": "viewer"}}
    )
    ctx = svc.decode_token(token)

    assert ctx.user_id == "u1"
    assert ctx.tenant_ids == ["t_a"]
    assert ctx.role_map == {"t_a": "viewer"}


def test_tampered_token_rejected():
    token = JwtService(secret="one").issue_token({"sub": "u1"})
    with pytest.raises(ValueError):
        JwtService(secret="two").decode_token(token)


def test_missing_secret_raises(monkeypatch):
    monkeypatch.delenv("AUTH_JWT_SIGNING", raising=False)
    monkeypatch.delenv("AUTH_JWT_DEV_SECRET", raising=False)
    with pytest.raises(RuntimeError):
        JwtService().issue_token({"sub": "u1"})


def test_auth_header_dependency(monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SIGNING", "header-secret")
    token = JwtService().issue_token({"sub": "u9", "tenant_ids": ["t_a"]})

    assert get_auth_context(f"Bearer {token}").user_id == "u9"
    with pytest.raises(HTTPException) as missing:
        get_auth_context(None)
    assert missing.value.status_code == 401
    with pytest.raises(HTTPException) as garbage:
        get_auth_context("Bearer not-a-token")
    assert garbage.value.status_code == 401


def test_membership_required():
    with pytest.raises(HTTPException) as exc:
        require_tenant_membership(_ctx(), "t_b")
    assert exc.value.status_code == 403


@pytest.mark.parametrize("role, allowed", [("admin", True), ("estimator", True), ("viewer", False)])
def test_write_roles(role, allowed):
    if allowed:
        require_tenant_role(_ctx(role), "t_a", WRITE_ROLES)
    else:
        with pytest.raises(HTTPException) as exc:
            require_tenant_role(_ctx(role), "t_a", WRITE_ROLES)
        assert exc.value.status_code == 403


def test_viewer_can_read():
    require_tenant_role(_ctx("viewer"), "t_a", READ_ROLES)


def test_user_token_carries_role_map():
    svc = JwtService(secret="unit-test-secret")
    ctx = svc.decode_token(svc.issue_user_token("u2", "qs@example.com", {"t_b": "admin", "t_a": "viewer"}))

    assert ctx.tenant_ids == ["t_a", "t_b"]
    assert ctx.default_tenant_id == "t_a"
    assert ctx.role_for("t_b") == "admin"
    assert ctx.role_for("t_c") is None


def test_expired_token_rejected():
    svc = JwtService(secret="unit-test-secret")
    token = svc.issue_user_token("u2", "qs@example.com", {"t_a": "admin"}, ttl_seconds=-60)
    with pytest.raises(ValueError, match="expired"):
        svc.decode_token(token)


def test_missing_secret_is_unauthorized_not_server_error(monkeypatch):
    monkeypatch.delenv("AUTH_JWT_SIGNING", raising=False)
    monkeypatch.delenv("AUTH_JWT_DEV_SECRET", raising=False)
    with pytest.raises(HTTPException) as exc:
        get_auth_context("Bearer a.b.c")
    assert exc.value.status_code == 401

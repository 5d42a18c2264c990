import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from qscost.common.error_envelope import build_error_envelope, not_found_error
from qscost.common.health import router as health_router
from qscost.common.identity import RequestContext, get_request_context

app = FastAPI()
app.include_router(health_router)


@app.get("/context")
def _context_sample(context: RequestContext = Depends(get_request_context)) -> dict:
    return {
        "tenant_id": context.tenant_id,
        "env": context.env,
        "user_id": context.user_id,
        "request_id": context.request_id,
    }


@app.get("/missing/{item_id}")
def _missing(item_id: str) -> dict:
    not_found_error("line_item", item_id)


client = TestClient(app)


def test_context_from_headers() -> None:
    response = client.get("/context", headers={"X-Tenant-Id": "t_test", "X-User-Id": "u1", "X-Request-Id": "r1"})
    assert response.status_code == 200
    body = response.json()
    assert body["tenant_id"] == "t_test"
    assert body["user_id"] == "u1"
    assert body["request_id"] == "r1"


def test_missing_tenant_errors_400() -> None:
    response = client.get("/context")
    assert response.status_code == 400
    assert response.json()["detail"] == "X-Tenant-Id header is required"


def test_malformed_tenant_errors_400() -> None:
    response = client.get("/context", headers={"X-Tenant-Id": "Acme Ltd"})
    assert response.status_code == 400


def test_env_defaults_from_environment(monkeypatch) -> None:
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.setenv("APP_ENV", "STAGING")
    assert RequestContext(tenant_id="t_test").env == "staging"


def test_context_rejects_bad_tenant() -> None:
    with pytest.raises(ValueError):
        RequestContext(tenant_id="")


def test_not_found_envelope() -> None:
    response = client.get("/missing/li_42")
    assert response.status_code == 404
    error = response.json()["detail"]["error"]
    assert error == {
        "code": "line_item.not_found",
        "message": "line_item li_42 not found",
        "http_status": 404,
        "resource_kind": "line_item",
        "details": {"id": "li_42"},
    }


def test_build_envelope_defaults() -> None:
    envelope = build_error_envelope("estimation.error", "boom")
    assert envelope.error.http_status == 400
    assert envelope.error.details == {}


def test_health_and_readiness(monkeypatch) -> None:
    monkeypatch.setenv("ESTIMATION_BACKEND", "memory")
    assert client.get("/health").json() == {"status": "ok", "backend": "memory", "version": "0.1.0"}
    assert client.get("/ready").status_code == 200


def test_ready_checks_filesystem_dir(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("ESTIMATION_BACKEND", "filesystem")
    monkeypatch.setenv("ESTIMATION_BACKEND_FS_DIR", str(tmp_path))
    assert client.get("/ready").status_code == 200

    monkeypatch.setenv("ESTIMATION_BACKEND_FS_DIR", str(tmp_path / "absent"))
    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "unavailable"


def test_ready_rejects_unknown_backend(monkeypatch) -> None:
    monkeypatch.setenv("ESTIMATION_BACKEND", "firestore")
    assert client.get("/ready").status_code == 503

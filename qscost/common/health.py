"""Liveness and readiness checks."""
import os
import tempfile
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from qscost.config import runtime_config

router = APIRouter(tags=["system"])


class HealthStatus(BaseModel):
    status: str
    backend: str = ""
    version: str = "0.1.0"


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok", backend=runtime_config.get_estimation_backend())


@router.get("/ready", response_model=HealthStatus)
def readiness_check():
    backend = runtime_config.get_estimation_backend()
    if backend == "filesystem":
        root = Path(runtime_config.get_estimation_fs_dir() or Path(tempfile.gettempdir()) / "qscost")
        if not root.is_dir() or not os.access(root, os.W_OK):
            return JSONResponse(
                status_code=503,
                content=HealthStatus(status="unavailable", backend=backend).model_dump(),
            )
    elif backend != "memory":
        return JSONResponse(status_code=503, content=HealthStatus(status="misconfigured", backend=backend).model_dump())
    return HealthStatus(status="ok", backend=backend)

"""FastAPI application assembly."""
from __future__ import annotations

import logging

from fastapi import FastAPI

from qscost.common.error_envelope import install_error_handlers
from qscost.common.health import router as health_router
from qscost.config import runtime_config
from qscost.cost_catalog.routes import router as cost_catalog_router
from qscost.estimation.routes import router as estimation_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="qscost", version="0.1.0")
    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(cost_catalog_router)
    app.include_router(estimation_router)
    logger.info("qscost app created (backend=%s)", runtime_config.get_estimation_backend())
    return app


app = create_app()

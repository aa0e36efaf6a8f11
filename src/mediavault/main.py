"""FastAPI application entry point.

Run with ``uvicorn mediavault.main:create_app --factory``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import ServiceContainer, build_container, include_routers
from .logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    *,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Build FastAPI instance; the worker pool lives as long as the app."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    services = container or build_container(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services.worker_pool.start()
        try:
            yield
        finally:
            services.worker_pool.stop()

    app = FastAPI(title="MediaVault", lifespan=lifespan)
    include_routers(app, services)
    logger.info(
        "app.created",
        extra={
            "worker_count": services.worker_pool.size,
            "queue_capacity": services.job_queue.capacity,
        },
    )
    return app

"""FastAPI application -- API certification service entrypoint."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

import certifier.deps as deps
from certifier.api.validations import router as validations_router
from certifier.config import load_settings
from certifier.service import CertificationService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build the service on startup, drop it on shutdown."""
    log_level = logging.DEBUG if os.environ.get("CERTIFIER_DEV_MODE") else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    settings = load_settings()
    deps._service = CertificationService(settings)
    logger.info("API certification service ready")

    yield

    deps._service = None


app = FastAPI(
    title="API Certification Service",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(validations_router)

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import JSONResponse, Response

from image_uploader.api.uploads import register_upload_routes, serve_static_files
from image_uploader.config import Settings, settings, validate_settings
from image_uploader.errors import register_error_handlers
from image_uploader.logging import configure_logging
from image_uploader.middleware.security_headers import SecurityHeadersMiddleware
from image_uploader.observability import ObservabilityMiddleware
from image_uploader.services.image_upload import ImageUploader
from image_uploader.telemetry import setup_otel

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ── Startup ──────────────────────────────────────────
        for w in validate_settings(app_settings):
            logger.warning("Config warning: %s", w)
        logger.info("Application started (pid=%s)", os.getpid())
        yield
        # ── Shutdown ─────────────────────────────────────────
        logger.info("Application shutting down")

    app = FastAPI(title="Image Upload Service", lifespan=lifespan)
    setup_otel(app)

    # ── Middleware (order matters: last added = first executed) ──
    register_error_handlers(app)

    cors_origins = [
        o.strip() for o in app_settings.cors_origins.split(",") if o.strip()
    ]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-Id"],
        )

    app.add_middleware(
        SecurityHeadersMiddleware, sandbox_prefixes=[app_settings.static_route]
    )
    app.add_middleware(ObservabilityMiddleware)

    uploader = ImageUploader(app_settings.upload_config())
    app.state.uploader = uploader
    register_upload_routes(app, uploader, app_settings.upload_route_prefix)

    # ── Health Checks ────────────────────────────────────────

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Liveness probe: always returns ok if the process is running."""
        return {"status": "ok"}

    @app.get("/health/ready")
    def readiness_check() -> JSONResponse:
        """Readiness probe: verifies the storage root is writable."""
        storage_root = uploader.paths.storage_root
        writable = storage_root.is_dir() and os.access(storage_root, os.W_OK)
        checks = {"storage": "ok" if writable else f"error: {storage_root} is not writable"}
        return JSONResponse(
            status_code=200 if writable else 503,
            content={"status": "ok" if writable else "degraded", "checks": checks},
        )

    @app.get("/metrics")
    def metrics() -> Response:
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    # Mounted last so it never shadows the routes above.
    serve_static_files(app, uploader, app_settings.static_route)
    return app


configure_logging(settings.log_level)
app = create_app()

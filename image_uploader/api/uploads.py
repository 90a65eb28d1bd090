import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from image_uploader.metrics import UPLOAD_REQUESTS, UPLOADED_FILES
from image_uploader.schemas.upload import UploadResult
from image_uploader.services.image_upload import ImageUploader
from image_uploader.services.multipart import FormDataSource
from image_uploader.services.storage import ensure_directory

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_PATH = "/upload"
DEFAULT_STATIC_ROUTE = "/storage"


def upload_endpoint(uploader: ImageUploader):
    async def upload_images(request: Request) -> JSONResponse:
        source = await FormDataSource.from_request(request)
        try:
            result, status_code = await run_in_threadpool(
                uploader.handle_upload, source
            )
        finally:
            await source.aclose()

        UPLOAD_REQUESTS.labels("success" if result.success else "rejected").inc()
        if result.success:
            UPLOADED_FILES.inc(len(result.file_paths or []))
        logger.info(
            "upload_completed",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "status": status_code,
                "file_count": len(result.file_paths or []),
            },
        )
        return JSONResponse(status_code=status_code, content=result.to_payload())

    return upload_images


def register_upload_routes(
    router: FastAPI | APIRouter,
    uploader: ImageUploader,
    base_path: str = DEFAULT_UPLOAD_PATH,
) -> None:
    """Register the upload handler as POST ``base_path`` and ``base_path/images``."""
    base_path = base_path or DEFAULT_UPLOAD_PATH
    endpoint = upload_endpoint(uploader)
    for path in (base_path, base_path.rstrip("/") + "/images"):
        router.add_api_route(
            path,
            endpoint,
            methods=["POST"],
            tags=["uploads"],
            response_model=UploadResult,
            response_model_exclude_none=True,
            responses={400: {"model": UploadResult}},
        )


def serve_static_files(
    app: FastAPI, uploader: ImageUploader, route: str = DEFAULT_STATIC_ROUTE
) -> None:
    """Serve the uploader's storage root as static files under ``route``."""
    route = (route or DEFAULT_STATIC_ROUTE).rstrip("/") or DEFAULT_STATIC_ROUTE
    storage_root = uploader.paths.storage_root
    ensure_directory(storage_root)
    app.mount(
        route,
        StaticFiles(directory=storage_root),
        name=route.strip("/").replace("/", "_") or "storage",
    )

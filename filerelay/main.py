"""
filerelay
- POST /api/upload : store a file in the GitHub repo, return a short link
- GET /{filename}  : redirect a short link to the raw file
- GET /api/info/{id} : metadata for one upload
"""

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from filerelay.core.config import Settings, get_settings
from filerelay.core.logging import configure_logging
from filerelay.models.file import utc_timestamp
from filerelay.routers import files
from filerelay.services.contents import ContentsClient
from filerelay.services.mappings import MappingStore
from filerelay.services.uploads import UploadService

logger = logging.getLogger(__name__)

# room for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD = 64 * 1024


def create_app(
    settings: Settings | None = None,
    http_client: httpx.Client | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_file)

    contents = ContentsClient(settings, client=http_client)
    mappings = MappingStore(
        contents,
        path=settings.mappings_path,
        retries=settings.mapping_write_retries,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        contents.close()

    app = FastAPI(title="filerelay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.contents = contents
    app.state.mappings = mappings
    app.state.uploads = UploadService(settings, contents, mappings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_upload_size(request: Request, call_next):
        # reject obviously oversized bodies before the multipart parser runs
        if request.method == "POST" and request.url.path == "/api/upload":
            length = request.headers.get("content-length")
            if length and length.isdigit() and int(length) > settings.max_file_size + MULTIPART_OVERHEAD:
                return JSONResponse(
                    status_code=400,
                    content={"error": f"File size exceeds {settings.max_file_size_mb:g}MB limit"},
                )
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def upload_validation_handler(request: Request, exc: RequestValidationError):
        # a "file" field that is not a file part is the same as no file
        if request.url.path == "/api/upload":
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})
        return await request_validation_exception_handler(request, exc)

    @app.get("/health")
    def health():
        return {"status": "OK", "timestamp": utc_timestamp()}

    # files.router ends with the /{filename} catch-all, so it goes last
    app.include_router(files.router)

    return app


def run():
    settings = get_settings()
    app = create_app(settings)
    logger.info("Server running on port %d", settings.port)
    logger.info("Upload limit: %gMB", settings.max_file_size_mb)
    logger.info("Storing files in %s@%s", settings.repo_url, settings.github_branch)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()

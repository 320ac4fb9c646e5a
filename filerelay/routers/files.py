import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse

from filerelay.core.errors import RelayError, ValidationError
from filerelay.models.file import UploadResult, identifier_from_filename
from filerelay.services.contents import ContentsClient
from filerelay.services.mappings import MappingStore
from filerelay.services.uploads import UploadService

router = APIRouter()

logger = logging.getLogger(__name__)


# --- dependencies, wired up once in create_app() ---
def get_upload_service(request: Request) -> UploadService:
    return request.app.state.uploads


def get_mapping_store(request: Request) -> MappingStore:
    return request.app.state.mappings


def get_contents(request: Request) -> ContentsClient:
    return request.app.state.contents


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "File not found"})


# --- upload a new file ---
@router.post("/api/upload", response_model=UploadResult)
def upload_file(
    file: UploadFile | None = File(None),
    uploads: UploadService = Depends(get_upload_service),
):
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})

    # size comes from the bytes we actually received, not the client's claim
    content = file.file.read()

    try:
        record, url = uploads.store_upload(file.filename, content, file.content_type)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except RelayError as e:
        logger.error("Upload error: %s", e.message)
        return JSONResponse(
            status_code=500,
            content={"error": "Upload failed", "details": e.message},
        )

    return UploadResult(
        id=record.id,
        filename=record.stored_filename,
        url=url,
        originalName=record.original_name,
        size=record.size,
        timestamp=record.upload_time,
    )


# --- metadata for one identifier ---
@router.get("/api/info/{file_id}")
def file_info(file_id: str, mappings: MappingStore = Depends(get_mapping_store)):
    try:
        record = mappings.get(file_id)
    except RelayError as e:
        logger.error("File info error: %s", e.message)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to get file info", "details": e.message},
        )

    if record is None:
        return _not_found()
    return record.to_wire()


# --- short link -> raw content; must stay the last route ---
@router.get("/{filename}")
def retrieve_file(
    filename: str,
    mappings: MappingStore = Depends(get_mapping_store),
    contents: ContentsClient = Depends(get_contents),
):
    file_id = identifier_from_filename(filename)
    try:
        record = mappings.get(file_id)
    except RelayError as e:
        logger.error("File retrieval error: %s", e.message)
        return JSONResponse(
            status_code=500,
            content={"error": "File retrieval failed", "details": e.message},
        )

    if record is None:
        return _not_found()
    return RedirectResponse(url=contents.raw_url(filename), status_code=302)

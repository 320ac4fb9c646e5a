# filerelay/models/file.py
import os
import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


_SAFE_EXTENSION = re.compile(r"[a-z0-9]+")


def derive_extension(original_name: str, fallback: str = "bin") -> str:
    ext = os.path.splitext(original_name or "")[1].lower().lstrip(".")
    # the extension ends up in object paths and URLs
    if not _SAFE_EXTENSION.fullmatch(ext):
        return fallback
    return ext


def identifier_from_filename(filename: str) -> str:
    return os.path.splitext(filename)[0]


class FileRecord(BaseModel):
    # Keys in mappings.json are camelCase; keep them that way on the wire
    model_config = ConfigDict(populate_by_name=True)

    id: str
    original_name: str = Field(alias="originalName")   # Name the client sent
    extension: str
    stored_filename: str = Field(alias="filename")     # Object name in the repo
    upload_time: str = Field(alias="uploadTime")
    size: int                                          # Size in bytes
    mime_type: str | None = Field(default=None, alias="mimeType")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# identifier -> record
MappingDocument = dict[str, FileRecord]


class UploadResult(BaseModel):
    success: bool = True
    id: str
    filename: str
    url: str
    originalName: str
    size: int
    timestamp: str

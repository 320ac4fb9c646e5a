# filerelay/services/uploads.py
import logging
from urllib.parse import quote

from filerelay.core.config import Settings
from filerelay.core.errors import RelayError, ValidationError
from filerelay.models.file import FileRecord, derive_extension, utc_timestamp
from filerelay.services.contents import ContentsClient
from filerelay.services.ids import generate_id
from filerelay.services.mappings import MappingStore

logger = logging.getLogger(__name__)


class UploadService:
    def __init__(self, settings: Settings, contents: ContentsClient, mappings: MappingStore):
        self.settings = settings
        self.contents = contents
        self.mappings = mappings

    def public_url(self, stored_filename: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{quote(stored_filename)}"

    def validate(self, original_name: str | None, size: int) -> str:
        """Check the upload before anything is written; returns the extension."""
        if not original_name:
            raise ValidationError("No file uploaded")
        if size > self.settings.max_file_size:
            raise ValidationError(
                f"File size exceeds {self.settings.max_file_size_mb:g}MB limit"
            )

        extension = derive_extension(original_name, self.settings.fallback_extension)
        allowed = [e.lower().lstrip(".") for e in self.settings.allowed_extensions]
        if allowed and extension not in allowed:
            raise ValidationError(f"File type .{extension} is not allowed")
        return extension

    def store_upload(
        self,
        original_name: str | None,
        data: bytes,
        mime_type: str | None = None,
    ) -> tuple[FileRecord, str]:
        extension = self.validate(original_name, len(data))

        file_id = generate_id(self.settings.id_length)
        stored_filename = f"{file_id}.{extension}"
        logger.info("Uploading %s -> %s (%d bytes)", original_name, stored_filename, len(data))

        # fail before writing anything if the mapping document is unusable;
        # insert() reloads it under the lock
        self.mappings.load()

        self.contents.write_object(
            stored_filename,
            data,
            f"Upload: {original_name} -> {stored_filename}",
        )

        record = FileRecord(
            id=file_id,
            original_name=original_name,
            extension=extension,
            stored_filename=stored_filename,
            upload_time=utc_timestamp(),
            size=len(data),
            mime_type=mime_type,
        )

        try:
            self.mappings.insert(record)
        except RelayError:
            # the object is already in the repo; nothing points at it now
            logger.error("Mapping update failed, %s is orphaned", stored_filename)
            raise

        return record, self.public_url(stored_filename)

# filerelay/services/mappings.py
"""
Identifier -> FileRecord mapping, kept as one JSON document in the repo.

Reads always go to the remote. Inserts are serialized by a process-wide lock
and written conditionally on the sha that was read, so a concurrent writer in
another process shows up as a ConflictError and the insert is replayed on top
of the fresh document.
"""

import json
import logging
import threading

from pydantic import ValidationError as PydanticValidationError

from filerelay.core.errors import ConflictError, NotFound, TransportError
from filerelay.models.file import FileRecord, MappingDocument
from filerelay.services.contents import ContentsClient

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Update file mappings"


class MappingStore:
    def __init__(self, contents: ContentsClient, path: str = "mappings.json", retries: int = 3):
        self.contents = contents
        self.path = path
        self.retries = max(1, retries)
        self._lock = threading.Lock()

    def _load_versioned(self) -> tuple[MappingDocument, str | None]:
        try:
            obj = self.contents.fetch_object(self.path)
        except NotFound:
            return {}, None

        try:
            raw = json.loads(obj.content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise TransportError(f"{self.path} is not valid JSON") from e
        if not isinstance(raw, dict):
            raise TransportError(f"{self.path} is not a JSON object")

        try:
            document = {key: FileRecord.model_validate(value) for key, value in raw.items()}
        except PydanticValidationError as e:
            raise TransportError(f"{self.path} holds a malformed record: {e}") from e
        return document, obj.sha

    def load(self) -> MappingDocument:
        document, _ = self._load_versioned()
        return document

    @staticmethod
    def merge(document: MappingDocument, file_id: str, record: FileRecord) -> None:
        document[file_id] = record

    def save(
        self,
        document: MappingDocument,
        sha: str | None = None,
        create_only: bool = False,
    ) -> None:
        body = json.dumps({key: rec.to_wire() for key, rec in document.items()}, indent=2)
        self.contents.write_object(
            self.path, body.encode("utf-8"), COMMIT_MESSAGE, sha=sha, create_only=create_only
        )

    def get(self, file_id: str) -> FileRecord | None:
        return self.load().get(file_id)

    def insert(self, record: FileRecord) -> None:
        with self._lock:
            for attempt in range(1, self.retries + 1):
                document, sha = self._load_versioned()
                self.merge(document, record.id, record)
                try:
                    self.save(document, sha=sha, create_only=sha is None)
                    return
                except ConflictError:
                    if attempt == self.retries:
                        raise
                    logger.warning(
                        "Mapping document changed remotely, retrying insert of %s (%d/%d)",
                        record.id, attempt, self.retries,
                    )

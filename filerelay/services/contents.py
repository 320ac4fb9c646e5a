# filerelay/services/contents.py
"""
Thin client for the GitHub contents API, used as a remote object store.

Every call is exactly one HTTP round trip. There is no cache and no retry;
callers decide what to do with a failure.
"""

import base64
import binascii
import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from filerelay.core.config import Settings
from filerelay.core.errors import ConflictError, NotFound, TransportError

logger = logging.getLogger(__name__)


class RemoteObject(BaseModel):
    path: str
    content: bytes
    sha: str | None = None


class ContentsClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._owns_client = client is None
        if client is None:
            kwargs = {}
            if settings.request_timeout is not None:
                kwargs["timeout"] = settings.request_timeout
            client = httpx.Client(**kwargs)
        self._client = client

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        if self._owns_client:
            self._client.close()

    def _headers(self) -> dict:
        return {
            "Authorization": f"token {self.settings.github_token}",
            "Accept": "application/vnd.github.v3+json",
        }

    def _url(self, path: str) -> str:
        return f"{self.settings.contents_url}/{quote(path.lstrip('/'), safe='/')}"

    def raw_url(self, path: str) -> str:
        return f"{self.settings.raw_base_url}/{quote(path.lstrip('/'), safe='/')}"

    def fetch_object(self, path: str) -> RemoteObject:
        logger.debug("GET %s@%s", path, self.settings.github_branch)
        try:
            resp = self._client.get(
                self._url(path),
                params={"ref": self.settings.github_branch},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Could not reach contents API: {e}") from e

        if resp.status_code == 404:
            raise NotFound(f"{path} not found")
        if not resp.is_success:
            raise TransportError(
                f"Contents API returned {resp.status_code} for {path}: {resp.text[:200]}"
            )

        try:
            body = resp.json()
            content = base64.b64decode(body["content"])
        except (ValueError, KeyError, TypeError, binascii.Error) as e:
            raise TransportError(f"Unexpected contents payload for {path}") from e

        return RemoteObject(path=path, content=content, sha=body.get("sha"))

    def write_object(
        self,
        path: str,
        data: bytes,
        message: str,
        sha: str | None = None,
        create_only: bool = False,
    ) -> dict:
        """
        Create or overwrite ``path``. Passing the object's current ``sha``
        makes the write conditional: the API rejects it if the object changed.
        With ``create_only`` the caller saw no object at ``path``, so a
        rejection means someone else created it first.
        """
        payload = {
            "message": message,
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.settings.github_branch,
        }
        if sha:
            payload["sha"] = sha

        logger.debug("PUT %s (%d bytes)", path, len(data))
        try:
            resp = self._client.put(self._url(path), json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(f"Could not reach contents API: {e}") from e

        if resp.status_code in (409, 422):
            if sha:
                raise ConflictError(f"{path} changed remotely (stale sha {sha})")
            if create_only:
                raise ConflictError(f"{path} was created remotely in the meantime")
        if not resp.is_success:
            raise TransportError(
                f"Contents API returned {resp.status_code} for {path}: {resp.text[:200]}"
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(f"Unexpected write response for {path}") from e
        if isinstance(body, dict) and isinstance(body.get("content"), dict):
            return body["content"]
        return body

import base64
import hashlib
import json
import threading

import httpx
import pytest
from fastapi.testclient import TestClient

from filerelay.core.config import Settings
from filerelay.main import create_app
from filerelay.services.contents import ContentsClient
from filerelay.services.mappings import MappingStore

CONTENTS_PREFIX = "/repos/acme/media/contents/"


class FakeContentsAPI:
    """
    In-memory stand-in for the GitHub contents API, mounted on httpx.MockTransport.

    Tracks a sha per object and rejects writes to an existing object unless the
    caller sends the current sha, the way GitHub does.
    """

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.fail_with = None  # status code to return for every request
        self.before_put = None  # hook(path) run before a PUT is applied
        self._lock = threading.Lock()

    @staticmethod
    def _sha(data: bytes) -> str:
        return hashlib.sha1(data).hexdigest()

    def put_object(self, path: str, data: bytes):
        self.objects[path] = (data, self._sha(data))

    def mapping(self, path="mappings.json") -> dict:
        return json.loads(self.objects[path][0])

    def writes(self):
        return [(method, path) for method, path, _ in self.calls if method == "PUT"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len(CONTENTS_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))

        if self.fail_with:
            return httpx.Response(self.fail_with, json={"message": "boom"})

        if request.method == "GET":
            with self._lock:
                if path not in self.objects:
                    return httpx.Response(404, json={"message": "Not Found"})
                data, sha = self.objects[path]
            return httpx.Response(
                200,
                json={"path": path, "sha": sha, "content": base64.b64encode(data).decode()},
            )

        if request.method == "PUT":
            if self.before_put:
                self.before_put(path)
                if self.fail_with:
                    return httpx.Response(self.fail_with, json={"message": "boom"})
            with self._lock:
                current = self.objects.get(path)
                if current is not None and not body.get("sha"):
                    return httpx.Response(422, json={"message": "\"sha\" wasn't supplied."})
                if current is not None and body["sha"] != current[1]:
                    return httpx.Response(409, json={"message": "sha does not match"})
                data = base64.b64decode(body["content"])
                self.put_object(path, data)
                sha = self.objects[path][1]
            return httpx.Response(
                201 if current is None else 200,
                json={"content": {"path": path, "sha": sha}, "commit": {"message": body["message"]}},
            )

        return httpx.Response(405)


@pytest.fixture
def settings():
    return Settings(
        github_owner="acme",
        github_repo="media",
        github_token="test-token",
        base_url="https://files.example.com",
        max_file_size=1024,
        _env_file=None,
    )


@pytest.fixture
def fake_api():
    return FakeContentsAPI()


@pytest.fixture
def http_client(fake_api):
    with httpx.Client(transport=httpx.MockTransport(fake_api)) as c:
        yield c


@pytest.fixture
def contents(settings, http_client):
    return ContentsClient(settings, client=http_client)


@pytest.fixture
def mapping_store(contents):
    return MappingStore(contents, path="mappings.json", retries=3)


@pytest.fixture
def client(settings, http_client):
    app = create_app(settings, http_client=http_client)
    with TestClient(app) as c:
        yield c

"""
Shared pytest fixtures: mod folders on disk and an in-process server
"""

import json
import threading
from pathlib import Path

import pytest
import requests
from fastapi.testclient import TestClient

from mcmodsync.server.config import ServerConfig
from mcmodsync.server.server import create_app
from mcmodsync.server.services import ManifestSource

SERVER_URL = "http://testserver"


def write_files(folder: Path, files: dict) -> Path:
    """Create folder and write name -> bytes into it (names may contain '/')"""
    folder.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        path = folder / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return folder


def write_deletions(path: Path, deletions: dict) -> Path:
    path.write_text(json.dumps(deletions), encoding="utf-8")
    return path


class FakeResponse:
    """Just enough of requests.Response for ModSyncAPI"""

    def __init__(self, status_code=200, content=b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.closed = True

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]


class BridgeSession:
    """requests-like session that forwards GETs to a FastAPI TestClient"""

    def __init__(self, client: TestClient, fail_names=(), lock=None, calls=None):
        self.client = client
        self.fail_names = set(fail_names)
        self.calls = calls if calls is not None else []
        self._lock = lock or threading.Lock()

    def get(self, url, params=None, stream=False, timeout=None):
        with self._lock:
            self.calls.append((url, dict(params or {})))
            if params and params.get("file") in self.fail_names:
                raise requests.ConnectionError(f"connection reset while fetching {params['file']}")
            r = self.client.get(url, params=params)
        return FakeResponse(r.status_code, r.content, dict(r.headers))

    def close(self):
        pass


class ModServer:
    """A built ManifestSource with its app and test client"""

    def __init__(self, root: Path, files: dict, deletions: dict = None, **config):
        self.mods = write_files(root / "server_mods", files)
        self.delete_file = root / "delete.json"
        if deletions is not None:
            write_deletions(self.delete_file, deletions)
        self.config = ServerConfig(mods_folder=str(self.mods), delete_file=str(self.delete_file), **config)
        self.source = ManifestSource(self.config.mods_folder, self.config.delete_file)
        self.source.build()
        self.app = create_app(self.source, self.config)
        self.client = TestClient(self.app)
        self.lock = threading.Lock()
        self.calls = []

    def session_factory(self, fail_names=()):
        def factory(max_retries=0):
            return BridgeSession(self.client, fail_names, self.lock, self.calls)
        return factory


@pytest.fixture
def mod_server(tmp_path):
    """Factory building a ModServer under tmp_path"""
    def make(files, deletions=None, **config):
        return ModServer(tmp_path, files, deletions, **config)
    return make

"""
HTTP access to the mcmodsync server
"""

import hashlib
import json
import logging
import threading
from typing import BinaryIO, Callable, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from mcmodsync.shared.exceptions import ManifestFormatError, NetworkError, NotFoundError
from mcmodsync.shared.models import Manifest

logger = logging.getLogger(__name__)


def make_session(max_retries: int = 0) -> requests.Session:
    """Create a session; with max_retries > 0, connect errors and 5xx are retried with backoff"""
    session = requests.Session()
    if max_retries > 0:
        retries = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"]
        )
        session.mount("http://", HTTPAdapter(max_retries=retries))
        session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


class ModSyncAPI:
    """Client for the list and download endpoints.

    The manifest request goes through a retrying session. Downloads use one
    plain session per thread: a failed download is reported, not retried.
    """

    def __init__(
        self,
        server_url: str,
        list_endpoint: str = "/list",
        download_endpoint: str = "/download",
        timeout: float = 30,
        max_retries: int = 3,
        chunk_size: int = 65536,
        session_factory: Optional[Callable[[int], requests.Session]] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.list_url = self.server_url + list_endpoint
        self.download_url = self.server_url + download_endpoint
        self.timeout = timeout
        self.max_retries = max_retries
        self.chunk_size = chunk_size
        self._session_factory = session_factory or make_session
        self._local = threading.local()

    @classmethod
    def from_config(cls, connection: dict, chunk_size: int = 65536, **kwargs) -> 'ModSyncAPI':
        """Create a client from ConfigManager.get_connection_settings()"""
        return cls(
            connection['server_url'],
            list_endpoint=connection['list_endpoint'],
            download_endpoint=connection['download_endpoint'],
            timeout=connection['timeout'],
            max_retries=connection['max_retries'],
            chunk_size=chunk_size,
            **kwargs
        )

    @property
    def _download_session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory(0)
            self._local.session = session
        return session

    def get_manifest(self) -> Manifest:
        """Fetch and parse the server manifest"""
        session = self._session_factory(self.max_retries)
        try:
            r = session.get(self.list_url, timeout=self.timeout)
            r.raise_for_status()
            body = r.content
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise NetworkError(f"cannot fetch mod list from {self.list_url}: {e}", status) from e
        except requests.RequestException as e:
            raise NetworkError(f"cannot fetch mod list from {self.list_url}: {e}") from e
        finally:
            session.close()

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ManifestFormatError(f"mod list from {self.list_url} is not valid JSON: {e}") from e

        manifest = Manifest.from_dict(data)
        logger.info(f"📋 Received mod list: {len(manifest.entries)} files, {len(manifest.deletions)} deletions")
        return manifest

    def download_to(self, name: str, out: BinaryIO) -> Tuple[int, str]:
        """Stream one file into out.

        Returns the number of bytes written and the SHA-256 digest of the data.
        404 raises NotFoundError, any other request failure NetworkError.
        Errors writing to out propagate unchanged.
        """
        hash_sha256 = hashlib.sha256()
        written = 0
        try:
            with self._download_session.get(
                self.download_url,
                params={"file": name},
                stream=True,
                timeout=self.timeout
            ) as r:
                if r.status_code == 404:
                    raise NotFoundError(f"{name} not found on server")
                r.raise_for_status()
                for chunk in r.iter_content(self.chunk_size):
                    if not chunk:
                        continue
                    out.write(chunk)
                    hash_sha256.update(chunk)
                    written += len(chunk)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise NetworkError(f"cannot download {name}: {e}", status) from e
        except requests.RequestException as e:
            raise NetworkError(f"cannot download {name}: {e}") from e
        return written, hash_sha256.hexdigest()

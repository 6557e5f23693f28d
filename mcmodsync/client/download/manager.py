"""
Download manager: fetches mod files through a bounded worker pool
"""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional, Union

from mcmodsync.client.network.connection_manager import ModSyncAPI
from mcmodsync.shared.exceptions import IntegrityError, InvalidNameError
from mcmodsync.shared.models import FileEntry
from mcmodsync.shared.pool import DEFAULT_CONCURRENCY, BatchResult, WorkerPool
from mcmodsync.shared.utils.helpers import format_file_size, is_plain_name

logger = logging.getLogger(__name__)


class DownloadManager:
    """Downloads manifest entries into the mods folder"""

    def __init__(
        self,
        api: ModSyncAPI,
        mods_folder: Union[str, Path],
        max_workers: int = DEFAULT_CONCURRENCY,
        verify_hashes: bool = True,
    ):
        self.api = api
        self.mods_folder = Path(mods_folder)
        self.verify_hashes = verify_hashes
        self.pool = WorkerPool(max_workers, name="download")

    def download_one(self, entry: FileEntry) -> int:
        """Download one file, replacing the local copy only once it is complete.

        Returns the size of the file. Network, file and digest errors are
        raised to the caller.
        """
        if not is_plain_name(entry.name):
            raise InvalidNameError(f"refusing to write file with invalid name: {entry.name!r}")

        dest = self.mods_folder / entry.name
        fd, temp = tempfile.mkstemp(dir=self.mods_folder, prefix=".mcmodsync-", suffix=".part")
        temp = Path(temp)
        try:
            with os.fdopen(fd, "wb") as f:
                size, digest = self.api.download_to(entry.name, f)
            if self.verify_hashes and digest != entry.digest:
                raise IntegrityError(entry.name, entry.digest, digest)
            os.replace(temp, dest)
        except BaseException:
            temp.unlink(missing_ok=True)
            raise

        logger.info(f"✅ Downloaded {entry.name} ({format_file_size(size)})")
        return size

    def download_all(
        self,
        entries: Iterable[FileEntry],
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Download every entry; failures are collected, never raised"""
        entries = list(entries)
        total = len(entries)
        for i, entry in enumerate(entries, start=1):
            logger.debug(f"({i}/{total}) queued: {entry.name}")

        done = 0
        lock = threading.Lock()

        def on_result(entry: FileEntry, error: Optional[BaseException]):
            nonlocal done
            with lock:
                done += 1
                position = done
            if error is None:
                logger.info(f"({position}/{total}) done: {entry.name}")
            else:
                logger.info(f"({position}/{total}) failed: {entry.name}")

        return self.pool.run(entries, self.download_one, cancel_event=cancel_event, on_result=on_result)

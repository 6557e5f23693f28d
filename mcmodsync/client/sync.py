"""
Client synchronization: compare with the server, delete, then download
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from mcmodsync.client.download.manager import DownloadManager
from mcmodsync.client.network.connection_manager import ModSyncAPI
from mcmodsync.shared.models import Manifest
from mcmodsync.shared.pool import DEFAULT_CONCURRENCY, TaskFailure
from mcmodsync.shared.reconcile import SyncPlan, reconcile
from mcmodsync.shared.scanner import hash_files, scan_files

logger = logging.getLogger(__name__)

DELETE = "delete"
DOWNLOAD = "download"

# confirm(action, names) -> proceed?
Confirm = Callable[[str, List[str]], bool]


def always_confirm(action: str, names: List[str]) -> bool:
    return True


@dataclass
class SyncReport:
    """What a synchronization run did"""

    deleted: List[str] = field(default_factory=list)
    delete_failed: List[Tuple[str, OSError]] = field(default_factory=list)
    downloaded: List[str] = field(default_factory=list)
    download_failed: List[TaskFailure] = field(default_factory=list)
    cancelled: List[str] = field(default_factory=list)
    unchanged: int = 0
    deletes_skipped: int = 0
    downloads_skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.delete_failed and not self.download_failed and not self.cancelled

    def summary(self) -> str:
        parts = [
            f"deleted: {len(self.deleted)}",
            f"delete failed: {len(self.delete_failed)}",
            f"downloaded: {len(self.downloaded)}",
            f"download failed: {len(self.download_failed)}",
            f"unchanged: {self.unchanged}",
        ]
        if self.cancelled:
            parts.append(f"cancelled: {len(self.cancelled)}")
        if self.deletes_skipped or self.downloads_skipped:
            parts.append(f"skipped: {self.deletes_skipped + self.downloads_skipped}")
        return ", ".join(parts)


class ModSynchronizer:
    """Brings a local mods folder in line with the server manifest"""

    def __init__(
        self,
        api: ModSyncAPI,
        mods_folder: Union[str, Path],
        max_workers: int = DEFAULT_CONCURRENCY,
        verify_hashes: bool = True,
        confirm: Optional[Confirm] = None,
    ):
        self.api = api
        self.mods_folder = Path(mods_folder)
        self.confirm = confirm or always_confirm
        self.downloads = DownloadManager(api, self.mods_folder, max_workers, verify_hashes)
        self._local_paths: Dict[str, Path] = {}

    def scan_local(self) -> Dict[str, str]:
        """Hash the local mods folder; read errors propagate"""
        self._local_paths = scan_files(self.mods_folder)
        index = hash_files(self._local_paths)
        logger.info(f"📁 Local mods folder {self.mods_folder}: {len(index)} files")
        return index

    def plan(self) -> Tuple[Manifest, SyncPlan]:
        """Fetch the manifest and compute what has to change"""
        local = self.scan_local()
        manifest = self.api.get_manifest()
        plan = reconcile(manifest, local)
        for name in plan.conflicts:
            logger.warning(f"⚠️ {name} is listed and marked deleted by the server; it will be downloaded again")
        return manifest, plan

    def delete_files(self, names: List[str], report: SyncReport):
        for name in sorted(names):
            path = self._local_paths.get(name, self.mods_folder / name)
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"❌ Cannot delete {name}: {e}")
                report.delete_failed.append((name, e))
            else:
                logger.info(f"🗑️ Deleted {name}")
                report.deleted.append(name)

    def run(self, dry_run: bool = False, cancel_event: Optional[threading.Event] = None) -> SyncReport:
        """Run one full synchronization.

        All deletions finish before the first download starts. Setup errors
        (local scan, manifest fetch) are raised; per-file errors end up in the
        report.
        """
        _, plan = self.plan()
        report = SyncReport(unchanged=len(plan.up_to_date))

        if plan.is_empty:
            logger.info("✅ All mods are up to date")
            return report

        to_delete = sorted(plan.to_delete)
        if to_delete:
            if dry_run:
                for name in to_delete:
                    logger.info(f"🗑️ would delete {name}")
            elif self.confirm(DELETE, to_delete):
                self.delete_files(to_delete, report)
            else:
                logger.info(f"Skipped deleting {len(to_delete)} files")
                report.deletes_skipped = len(to_delete)

        to_download = list(plan.to_download)
        if to_download:
            names = [entry.name for entry in to_download]
            if dry_run:
                for name in names:
                    logger.info(f"⬇️ would download {name}")
            elif self.confirm(DOWNLOAD, names):
                result = self.downloads.download_all(to_download, cancel_event=cancel_event)
                report.downloaded = [entry.name for entry in result.succeeded]
                report.download_failed = list(result.failed)
                report.cancelled = [entry.name for entry in result.cancelled]
            else:
                logger.info(f"Skipped downloading {len(names)} files")
                report.downloads_skipped = len(names)

        logger.info(f"Sync finished - {report.summary()}")
        return report

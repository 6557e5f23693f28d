"""
Server services for mcmodsync - builds and serves the manifest
"""

import json
import logging
import warnings
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from mcmodsync.shared.exceptions import (
    DataIntegrityWarning,
    InvalidNameError,
    ManifestFormatError,
    NotFoundError,
    ScanError,
)
from mcmodsync.shared.models import FileEntry, Manifest, parse_deletions
from mcmodsync.shared.scanner import hash_files, scan_files
from mcmodsync.shared.utils.helpers import format_file_size, is_plain_name

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 256 * 1024


def load_deletions(delete_file: Union[str, Path]) -> Dict[str, str]:
    """Load the tombstone list (name -> digest) maintained by the server operator.

    A missing file means no tombstones.
    """
    path = Path(delete_file)
    if not path.exists():
        logger.info(f"No deletion list at {path}, nothing is marked deleted")
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError as e:
        raise ManifestFormatError(f"cannot parse deletion list {path}: {e}") from e
    except OSError as e:
        raise ScanError(f"cannot read deletion list {path}: {e}") from e
    return parse_deletions(data)


class ManifestSource:
    """Immutable snapshot of the mods folder, built once at startup"""

    def __init__(self, mods_folder: Union[str, Path], delete_file: Optional[Union[str, Path]] = None):
        self.mods_folder = Path(mods_folder).resolve()
        self.delete_file = Path(delete_file) if delete_file else None
        self._manifest: Optional[Manifest] = None
        self._paths: Dict[str, Path] = {}
        self.built_at: Optional[datetime] = None

    def build(self) -> Manifest:
        """Scan the mods folder and load the deletion list.

        Any read error is raised: the server must not start with a partial
        manifest.
        """
        logger.info(f"📁 Scanning mods folder: {self.mods_folder}")
        paths = {
            name: path for name, path in scan_files(self.mods_folder).items()
            if self._inside(path)
        }
        digests = hash_files(paths)
        deletions = load_deletions(self.delete_file) if self.delete_file else {}

        manifest = Manifest.build(
            (FileEntry(name, digest) for name, digest in digests.items()),
            deletions,
        )
        for name in manifest.conflicts():
            warnings.warn(
                f"{name} is both listed and marked deleted; clients will delete and download it again",
                DataIntegrityWarning,
            )
            logger.warning(f"⚠️ {name} is both listed and marked deleted")

        total_size = sum(path.stat().st_size for path in paths.values())
        self._paths = paths
        self._manifest = manifest
        self.built_at = datetime.now()
        logger.info(
            f"✅ Manifest built: {len(manifest.entries)} files ({format_file_size(total_size)}), "
            f"{len(manifest.deletions)} deletions"
        )
        return manifest

    def _inside(self, path: Path) -> bool:
        if self.mods_folder in path.resolve().parents:
            return True
        logger.warning(f"⚠️ Skipping {path}: it points outside the mods folder")
        return False

    def get_manifest(self) -> Manifest:
        if self._manifest is None:
            raise RuntimeError("manifest has not been built")
        return self._manifest

    def resolve_file(self, name: str) -> Path:
        """Return the path of a listed file, refusing anything that is not a plain listed name"""
        if not is_plain_name(name):
            raise InvalidNameError(f"invalid file name: {name!r}")

        path = self._paths.get(name)
        if path is None or self.get_manifest().get(name) is None:
            raise NotFoundError(f"file not found: {name}")

        resolved = path.resolve()
        if self.mods_folder not in resolved.parents:
            raise InvalidNameError(f"file is outside the mods folder: {name!r}")
        if not resolved.is_file():
            raise NotFoundError(f"file no longer exists: {name}")
        return resolved

    def open_stream(self, name: str, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the content of a listed file by chunks"""
        path = self.resolve_file(name)

        def iterate():
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(chunk_size), b""):
                    yield chunk

        return iterate()

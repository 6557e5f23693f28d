"""
Directory scanning: finds the mod files under a folder and hashes them
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, Union

from mcmodsync.shared.exceptions import ScanError
from mcmodsync.shared.hashing import digest_file
from mcmodsync.shared.models import FileEntry

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError):
    raise ScanError(f"cannot read directory {error.filename}: {error.strerror or error}") from error


def walk_files(root: Union[str, Path]) -> Iterator[Path]:
    """Yield every regular file below root, recursing into subfolders.

    Folders are visited in sorted order so repeated scans of the same tree
    give the same order.
    """
    root = Path(root)
    if not root.is_dir():
        raise ScanError(f"mods folder does not exist or is not a directory: {root}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_file():
                yield path


def scan_files(root: Union[str, Path]) -> Dict[str, Path]:
    """Map base file name -> path for every file below root.

    Files are keyed by base name only. When two files share a name the one
    nearest to root wins, since that is where downloads write; at equal depth
    the one visited last wins. A warning is logged either way.
    """
    files = {}
    for path in walk_files(root):
        previous = files.get(path.name)
        if previous is None:
            files[path.name] = path
        elif len(path.parts) <= len(previous.parts):
            logger.warning(f"⚠️ Duplicate file name {path.name}: {path} replaces {previous}")
            files[path.name] = path
        else:
            logger.warning(f"⚠️ Duplicate file name {path.name}: {path} ignored, keeping {previous}")
    return files


def _hash(path: Path) -> str:
    try:
        return digest_file(path)
    except OSError as e:
        raise ScanError(f"cannot read file {path}: {e}") from e


def hash_files(files: Dict[str, Path]) -> Dict[str, str]:
    """Hash every file of a name -> path mapping"""
    return {name: _hash(path) for name, path in files.items()}


def scan_index(root: Union[str, Path]) -> Dict[str, str]:
    """Build a name -> digest index of a folder"""
    index = hash_files(scan_files(root))
    logger.debug(f"Indexed {len(index)} files in {root}")
    return index


def scan_entries(root: Union[str, Path]) -> List[FileEntry]:
    """Build manifest entries for a folder, in walk order"""
    return [FileEntry(name, digest) for name, digest in scan_index(root).items()]

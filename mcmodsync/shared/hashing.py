"""
Content digests for mod files
"""

import hashlib
from pathlib import Path
from typing import Union

CHUNK_SIZE = 65536


def digest_bytes(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of data"""
    return hashlib.sha256(data).hexdigest()


def digest_file(path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> str:
    """Calculate the SHA-256 digest of a file, reading it by chunks.

    Gives the same result as digest_bytes() over the whole content.
    OSError from open/read is not caught.
    """
    hash_sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hash_sha256.update(chunk)
    return hash_sha256.hexdigest()

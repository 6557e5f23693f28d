"""
Exceptions raised by mcmodsync
"""


class ModSyncError(Exception):
    """Base class for all mcmodsync errors"""


class ScanError(ModSyncError, OSError):
    """A directory could not be walked or a file could not be read"""


class ManifestFormatError(ModSyncError, ValueError):
    """A manifest or tombstone payload does not have the expected shape"""


class NetworkError(ModSyncError):
    """A request to the server failed"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(NetworkError):
    """The requested file does not exist on the server"""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class InvalidNameError(NotFoundError):
    """The requested file name is not a plain base name"""


class IntegrityError(ModSyncError):
    """A downloaded file does not match the digest from the manifest"""

    def __init__(self, name: str, expected: str, actual: str):
        super().__init__(f"digest mismatch for {name}: expected {expected}, got {actual}")
        self.name = name
        self.expected = expected
        self.actual = actual


class DataIntegrityWarning(UserWarning):
    """A name is listed as a current file and as a deleted file at the same time"""

"""
Manifest data structures shared by server and client
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from mcmodsync.shared.exceptions import ManifestFormatError


@dataclass(frozen=True)
class FileEntry:
    """A file listed by the server: base name and content digest"""

    name: str
    digest: str

    def to_dict(self) -> Dict[str, str]:
        """Convert the entry to its wire form"""
        return {'name': self.name, 'hash': self.digest}

    @classmethod
    def from_dict(cls, data: Any) -> 'FileEntry':
        if not isinstance(data, dict):
            raise ManifestFormatError(f"mod entry must be an object, got {type(data).__name__}")
        name = data.get('name')
        digest = data.get('hash')
        if not isinstance(name, str) or not name:
            raise ManifestFormatError(f"mod entry has no valid name: {data!r}")
        if not isinstance(digest, str) or not digest:
            raise ManifestFormatError(f"mod entry {name} has no valid hash")
        return cls(name=name, digest=digest.lower())


@dataclass(frozen=True)
class Manifest:
    """Server listing: current files plus deletion tombstones.

    entries keeps walk order, which means nothing for comparison; names are
    the keys. deletions maps a removed file name to the digest it had when it
    was removed.
    """

    entries: Tuple[FileEntry, ...] = ()
    deletions: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'entries', tuple(self.entries))
        object.__setattr__(self, 'deletions', MappingProxyType(dict(self.deletions)))

    @classmethod
    def build(cls, entries: Iterable[FileEntry], deletions: Optional[Mapping[str, str]] = None) -> 'Manifest':
        return cls(entries=tuple(entries), deletions=dict(deletions or {}))

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def get(self, name: str) -> Optional[FileEntry]:
        """Return the entry with the given name, if listed"""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def conflicts(self) -> List[str]:
        """Names that are both listed and tombstoned"""
        return sorted(name for name in self.names if name in self.deletions)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the manifest to its wire form"""
        return {
            'mods': [entry.to_dict() for entry in self.entries],
            'delete': dict(self.deletions),
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Manifest':
        """Parse a manifest received from the list endpoint"""
        if not isinstance(data, dict):
            raise ManifestFormatError(f"manifest must be an object, got {type(data).__name__}")

        if 'mods' not in data:
            raise ManifestFormatError("manifest has no 'mods' key")
        mods = data['mods']
        if mods is None:
            mods = []
        if not isinstance(mods, list):
            raise ManifestFormatError("'mods' must be a list")

        return cls(
            entries=tuple(FileEntry.from_dict(item) for item in mods),
            deletions=parse_deletions(data.get('delete')),
        )


def parse_deletions(data: Any) -> Dict[str, str]:
    """Validate a name -> digest tombstone mapping.

    None stands for an empty mapping.
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ManifestFormatError(f"deletion list must be an object, got {type(data).__name__}")

    deletions = {}
    for name, digest in data.items():
        if not isinstance(digest, str) or not digest:
            raise ManifestFormatError(f"deletion entry {name} has no valid hash")
        deletions[name] = digest.lower()
    return deletions

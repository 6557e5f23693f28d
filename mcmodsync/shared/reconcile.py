"""
Comparison of a server manifest with a local folder index
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Tuple

from mcmodsync.shared.models import FileEntry, Manifest


@dataclass(frozen=True)
class SyncPlan:
    """What a client has to do to match the server"""

    to_delete: FrozenSet[str]
    """Local files whose content equals a tombstone digest"""

    to_download: Tuple[FileEntry, ...]
    """Listed files missing locally or with a different digest, in manifest order"""

    up_to_date: FrozenSet[str]
    """Listed files whose local digest already matches"""

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_download

    @property
    def conflicts(self) -> List[str]:
        """Names that get deleted and then downloaded again"""
        downloads = {entry.name for entry in self.to_download}
        return sorted(self.to_delete & downloads)


def reconcile(remote: Manifest, local: Mapping[str, str]) -> SyncPlan:
    """Compute the delete/download/up-to-date sets.

    A local file is deleted only when its digest is exactly the one recorded
    in the tombstone, so files changed by the user are never removed.
    """
    to_delete = frozenset(
        name for name, digest in remote.deletions.items()
        if local.get(name) == digest
    )

    to_download = []
    up_to_date = set()
    for entry in remote.entries:
        if local.get(entry.name) == entry.digest:
            up_to_date.add(entry.name)
        else:
            to_download.append(entry)

    return SyncPlan(
        to_delete=to_delete,
        to_download=tuple(to_download),
        up_to_date=frozenset(up_to_date),
    )

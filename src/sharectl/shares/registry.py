import os
from typing import Dict, List, Optional

from sharectl.errors import ShareNotFound
from sharectl.shares.models import Protocol, ShareEntry


def identity_key(protocol: Protocol, identity: str) -> str:
    """Key under which a share is unique.

    NFS exports are compared by normalized path ("/srv/data/" and "/srv/data"
    are the same export). Samba treats share names case-insensitively.
    """
    identity = identity.strip()
    if protocol == Protocol.NFS:
        return os.path.normpath(identity)
    return identity.lower()


class ShareRegistry:
    """In-memory shares of one protocol, in insertion order."""

    def __init__(self, protocol: Protocol):
        self.protocol = protocol
        self._shares: Dict[str, ShareEntry] = {}

    def __contains__(self, identity: str) -> bool:
        return identity_key(self.protocol, identity) in self._shares

    def __len__(self) -> int:
        return len(self._shares)

    def put(self, entry: ShareEntry) -> None:
        self._shares[identity_key(self.protocol, entry.identity)] = entry

    def get(self, identity: str) -> Optional[ShareEntry]:
        return self._shares.get(identity_key(self.protocol, identity))

    def delete(self, identity: str) -> ShareEntry:
        try:
            return self._shares.pop(identity_key(self.protocol, identity))
        except KeyError:
            raise ShareNotFound(identity) from None

    def list(self) -> List[ShareEntry]:
        return list(self._shares.values())

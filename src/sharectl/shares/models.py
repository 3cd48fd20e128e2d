from enum import Enum
from typing import Dict, List, Optional, Union
from pydantic import BaseModel

class Protocol(str, Enum):
    NFS = "nfs"
    SMB = "smb"

class AccessMode(str, Enum):
    READ_ONLY = "read-only"
    READ_WRITE = "read/write"

class FileType(str, Enum):
    NORMAL = "normal files"
    MUSIC = "music"
    DOCUMENTS = "documents"
    PHOTOS = "photos"
    MOVIES = "movies/tv"

class ShareEntry(BaseModel):
    identity: str  # export path for NFS, share name for SMB
    protocol: Protocol
    target: str
    access_scope: str = ""
    access_mode: AccessMode = AccessMode.READ_WRITE
    options: List[str] = []
    fsid: Optional[str] = None  # NFS only

class ShareChanges(BaseModel):
    target: Optional[str] = None
    access_scope: Optional[str] = None
    access_mode: Optional[AccessMode] = None
    options: Optional[Union[str, List[str]]] = None  # replaces the option set
    add_options: Optional[Union[str, List[str]]] = None

class ShareResult(BaseModel):
    share: ShareEntry
    warnings: List[str] = []

class ForeignBlock(BaseModel):
    """Text sharectl does not manage: comments, manual entries, [global].

    ``identity`` names the share a manual entry describes, if any, so that
    a new share cannot be added next to it under the same name.
    """
    text: str
    identity: Optional[str] = None

class ManagedBlock(BaseModel):
    identity: str
    entry: ShareEntry
    text: str
    warnings: List[str] = []

Block = Union[ManagedBlock, ForeignBlock]

class ReconcileResult(BaseModel):
    path: str
    entries: List[ShareEntry] = []
    duplicates: List[str] = []
    warnings: Dict[str, List[str]] = {}

class DriftReport(BaseModel):
    path: str
    missing_on_disk: List[str] = []
    unmanaged_on_disk: List[str] = []
    changed: List[str] = []

    @property
    def has_drift(self) -> bool:
        return bool(self.missing_on_disk or self.unmanaged_on_disk or self.changed)

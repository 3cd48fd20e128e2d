from typing import List, Optional, Union

from pydantic import BaseModel, ValidationError

from sharectl.errors import ReloadFailed, ShareError
from sharectl.shares.models import AccessMode, FileType, Protocol, ShareChanges


class NFSShareConfig(BaseModel):
    path: str
    scope: str
    file_type: FileType = FileType.NORMAL
    access: AccessMode = AccessMode.READ_WRITE
    options: Optional[Union[str, List[str]]] = None


class SMBShareConfig(BaseModel):
    name: str
    path: str
    access: AccessMode = AccessMode.READ_WRITE
    users: str = ""
    options: Optional[Union[str, List[str]]] = None


def _apply_nfs(manager, share: NFSShareConfig) -> str:
    if share.path in manager.registries[Protocol.NFS]:
        # file type is fixed at creation; rsize/wsize are left alone
        manager.edit(Protocol.NFS, share.path, ShareChanges(
            access_scope=share.scope,
            access_mode=share.access,
            add_options=share.options,
        ))
        return f"NFS export '{share.path}' updated."
    manager.create_nfs_share(share.path, share.scope, share.file_type, share.access, share.options)
    return f"NFS export '{share.path}' created."


def _apply_smb(manager, share: SMBShareConfig) -> str:
    if share.name in manager.registries[Protocol.SMB]:
        manager.edit(Protocol.SMB, share.name, ShareChanges(
            target=share.path,
            access_scope=share.users,
            access_mode=share.access,
            add_options=share.options,
        ))
        return f"SMB share '{share.name}' updated."
    manager.create_smb_share(share.name, share.path, share.access, share.options, share.users)
    return f"SMB share '{share.name}' created."


def apply_configuration(manager, config):
    """Create or update every share listed in a declarative config.

    Errors are collected per share so one bad entry does not stop the rest.
    """
    messages = []
    sections = [
        ("nfs", NFSShareConfig, _apply_nfs),
        ("smb", SMBShareConfig, _apply_smb),
    ]
    for key, model, apply_share in sections:
        for share_config in config.get(key) or []:
            try:
                share = model(**share_config)
            except (TypeError, ValidationError) as e:
                messages.append(f"Invalid {key.upper()} share definition {share_config!r}: {e}")
                continue
            try:
                messages.append(apply_share(manager, share))
            except ReloadFailed as e:
                messages.append(f"Saved, but reload failed: {e}")
            except ShareError as e:
                messages.append(f"Error: {e}")
    return messages

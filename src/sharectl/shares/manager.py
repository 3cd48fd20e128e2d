import logging
import os
import re
import uuid
from typing import Dict, List, Optional

from sharectl.config.settings import config
from sharectl.errors import (
    FilePermissionError,
    InvalidShare,
    DuplicateShare,
    ReloadFailed,
    ServiceError,
    ShareError,
    ShareNotFound,
)
from sharectl.shares.exports import ExportsCodec
from sharectl.shares.models import (
    AccessMode,
    DriftReport,
    FileType,
    Protocol,
    ReconcileResult,
    ShareChanges,
    ShareEntry,
    ShareResult,
)
from sharectl.shares.options import (
    NFS_EXCLUSIVE,
    RawOptions,
    nfs_access_mode,
    option_key,
    split_raw_options,
    split_smb_header,
    subtract_options,
    tuned_nfs_options,
    validate_options,
    validate_scope,
    with_nfs_access_mode,
)
from sharectl.shares.registry import ShareRegistry, identity_key
from sharectl.shares.smb import RESERVED_SECTIONS, SmbConfCodec
from sharectl.shares.sync import ConfigSynchronizer

logger = logging.getLogger(__name__)

SHARE_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9 ._$-]{0,79}")


def check_path(value: str, what: str) -> str:
    """Return the stripped absolute path, or raise InvalidShare.

    A path is written verbatim into a config file, so it must stay on one
    line and carry no control characters.
    """
    value = value.strip()
    if (
        len(value.splitlines()) != 1
        or any(ord(c) < 32 or ord(c) == 127 for c in value)
        or not os.path.isabs(value)
    ):
        raise InvalidShare(f"Invalid path {value!r} for {what}: must be an absolute directory path.")
    return value


class ShareManager:
    """Create, edit and remove NFS exports and SMB shares.

    Each operation runs validate -> registry -> config file -> service reload.
    Validation errors abort before anything changes. A config file error rolls
    the registry back. A reload error leaves registry and file committed and is
    reported as ReloadFailed (or only logged, for removals).
    """

    def __init__(self, exports_path: Optional[str] = None, smb_conf_path: Optional[str] = None,
                 services=None):
        if services is None:
            from sharectl.systemd.manager import SystemdManager
            services = SystemdManager()
        self.services = services
        self.registries: Dict[Protocol, ShareRegistry] = {
            Protocol.NFS: ShareRegistry(Protocol.NFS),
            Protocol.SMB: ShareRegistry(Protocol.SMB),
        }
        self.synchronizers: Dict[Protocol, ConfigSynchronizer] = {
            Protocol.NFS: ConfigSynchronizer(exports_path or config.exports_path, ExportsCodec()),
            Protocol.SMB: ConfigSynchronizer(smb_conf_path or config.smb_conf_path, SmbConfCodec()),
        }

    def load(self) -> Dict[Protocol, ReconcileResult]:
        """Seed the registries from the config files. The files are trusted only here."""
        results = {}
        for protocol, synchronizer in self.synchronizers.items():
            result = synchronizer.reconcile()
            registry = ShareRegistry(protocol)
            for entry in result.entries:
                registry.put(entry)
            self.registries[protocol] = registry
            results[protocol] = result
            logger.info(f"Loaded {len(registry)} {protocol.value} shares from {result.path}")
        return results

    def list_shares(self, protocol: Protocol) -> List[ShareEntry]:
        return self.registries[Protocol(protocol)].list()

    def get_share(self, protocol: Protocol, identity: str) -> ShareEntry:
        entry = self.registries[Protocol(protocol)].get(identity)
        if entry is None:
            raise ShareNotFound(identity)
        return entry

    def render(self, entry: ShareEntry) -> str:
        return self.synchronizers[entry.protocol].render(entry)

    def drift(self) -> Dict[Protocol, DriftReport]:
        return {
            protocol: synchronizer.drift(self.registries[protocol])
            for protocol, synchronizer in self.synchronizers.items()
        }

    # Validation

    def _normalize_identity(self, entry: ShareEntry) -> ShareEntry:
        identity = entry.identity.strip()
        if entry.protocol == Protocol.NFS:
            path = check_path(identity or entry.target, "NFS export")
            target = identity_key(Protocol.NFS, path)
            if any(c in target for c in '()"'):
                raise InvalidShare(f"Invalid export path '{target}': must be an absolute directory path.")
            return entry.model_copy(update={"identity": target, "target": target})

        if not SHARE_NAME.fullmatch(identity) or identity.lower() in RESERVED_SECTIONS:
            raise InvalidShare(
                f"Invalid SMB share name '{identity}': use letters, digits, spaces, '.', '_', '-' or '$'."
            )
        target = check_path(entry.target, f"SMB share '{identity}'")
        return entry.model_copy(update={"identity": identity, "target": target})

    def _prepare(self, entry: ShareEntry) -> ShareResult:
        """Validate options and scope, returning the normalized entry."""
        options, warnings = validate_options(entry.protocol, entry.options)
        scope = entry.access_scope
        access_mode = entry.access_mode

        if entry.protocol == Protocol.NFS:
            if "rw" in options or "ro" in options:
                access_mode = nfs_access_mode(options)
            else:
                options = with_nfs_access_mode(options, access_mode)
        else:
            mode_from_options, scope_from_options, options = split_smb_header(options)
            access_mode = mode_from_options or access_mode
            scope = scope_from_options or scope

        prepared = entry.model_copy(update={
            "options": options,
            "access_mode": access_mode,
            "access_scope": validate_scope(entry.protocol, scope),
        })
        for warning in warnings:
            logger.warning(f"{entry.protocol.value} share {entry.identity}: {warning}")
        return ShareResult(share=prepared, warnings=warnings)

    def _check_target(self, entry: ShareEntry) -> None:
        if not os.path.isdir(entry.target):
            raise InvalidShare(f"Directory {entry.target} does not exist.")
        if entry.access_mode == AccessMode.READ_WRITE and not os.access(entry.target, os.W_OK):
            raise FilePermissionError(entry.target, "directory is not writable for a read/write share")

    # Service refresh

    def _reload(self, entry: ShareEntry) -> None:
        try:
            self.services.reload_share_service(entry.protocol)
        except ServiceError as e:
            logger.error(f"Reloading {entry.protocol.value} service failed after changing {entry.identity}: {e}")
            raise ReloadFailed(
                f"{entry.protocol.value.upper()} share '{entry.identity}' was saved to "
                f"{self.synchronizers[entry.protocol].path} but the service reload failed: {e}",
                share=entry,
            ) from e

    # Lifecycle

    def create(self, entry: ShareEntry) -> ShareResult:
        entry = self._normalize_identity(entry)
        registry = self.registries[entry.protocol]
        if entry.identity in registry:
            raise DuplicateShare(entry.identity, entry.protocol)

        result = self._prepare(entry)
        entry = result.share
        self._check_target(entry)
        if entry.protocol == Protocol.NFS and not entry.fsid:
            entry = entry.model_copy(update={"fsid": str(uuid.uuid4())})
            result.share = entry

        registry.put(entry)
        try:
            self.synchronizers[entry.protocol].append(entry)
        except ShareError as e:
            # the write is all-or-nothing, so the file is unchanged
            registry.delete(entry.identity)
            logger.error(f"Failed to add {entry.protocol.value} share {entry.identity}: {e}")
            raise

        logger.info(f"Created {entry.protocol.value} share {entry.identity}")
        self._reload(entry)
        return result

    def _commit_edit(self, current: ShareEntry, updated: ShareEntry) -> ShareResult:
        result = self._prepare(updated)
        registry = self.registries[current.protocol]
        registry.put(result.share)
        try:
            self.synchronizers[current.protocol].replace(result.share)
        except ShareError as e:
            registry.put(current)
            logger.error(f"Failed to update {current.protocol.value} share {current.identity}: {e}")
            raise

        logger.info(f"Updated {current.protocol.value} share {current.identity}")
        self._reload(result.share)
        return result

    def edit(self, protocol: Protocol, identity: str, changes: ShareChanges) -> ShareResult:
        protocol = Protocol(protocol)
        current = self.get_share(protocol, identity)
        updated = current.model_copy(deep=True)

        if changes.target is not None:
            if protocol == Protocol.NFS:
                raise InvalidShare(
                    f"The path of NFS export '{current.identity}' is its identity; "
                    "remove the export and create a new one instead."
                )
            updated.target = check_path(changes.target, f"SMB share '{current.identity}'")
        if changes.access_scope is not None:
            updated.access_scope = changes.access_scope

        options = list(current.options)
        if changes.options is not None:
            options = split_raw_options(protocol, changes.options)
        if changes.add_options is not None:
            added = split_raw_options(protocol, changes.add_options)
            added_keys = {option_key(protocol, token) for token in added}
            if protocol == Protocol.NFS:
                # adding "ro" replaces "rw", "async" replaces "sync", and so on
                for first, second in NFS_EXCLUSIVE:
                    if first in added_keys:
                        added_keys.add(second)
                    elif second in added_keys:
                        added_keys.add(first)
            options = [o for o in options if option_key(protocol, o) not in added_keys] + added
        updated.options = options

        if protocol == Protocol.NFS:
            if changes.access_mode is not None:
                updated.options = with_nfs_access_mode(options, changes.access_mode)
            elif not ("rw" in options or "ro" in options):
                # keep the current mode when the option set was replaced without one
                updated.options = with_nfs_access_mode(options, current.access_mode)
            updated.access_mode = nfs_access_mode(updated.options)
        elif changes.access_mode is not None:
            updated.access_mode = changes.access_mode

        return self._commit_edit(current, updated)

    def remove(self, protocol: Protocol, identity: str) -> ShareEntry:
        protocol = Protocol(protocol)
        registry = self.registries[protocol]
        current = self.get_share(protocol, identity)

        registry.delete(current.identity)
        try:
            self.synchronizers[protocol].remove(current.identity)
        except ShareError as e:
            registry.put(current)
            logger.error(f"Failed to remove {protocol.value} share {current.identity}: {e}")
            raise

        logger.info(f"Removed {protocol.value} share {current.identity}")
        try:
            self.services.reload_share_service(protocol)
        except ServiceError as e:
            logger.warning(f"Share {current.identity} removed but reloading the {protocol.value} service failed: {e}")
        return current

    def remove_options(self, protocol: Protocol, identity: str, to_remove: RawOptions) -> ShareResult:
        protocol = Protocol(protocol)
        current = self.get_share(protocol, identity)
        updated = current.model_copy(deep=True)
        updated.options = subtract_options(protocol, current.options, to_remove)
        if protocol == Protocol.NFS:
            updated.access_mode = nfs_access_mode(updated.options)
        return self._commit_edit(current, updated)

    # Entry points used by the CLI, API and apply

    def create_nfs_share(self, target: str, scope: str, file_type: FileType = FileType.NORMAL,
                         access_mode: AccessMode = AccessMode.READ_WRITE,
                         custom_options: RawOptions = None) -> ShareResult:
        options = tuned_nfs_options(file_type, access_mode)
        options += split_raw_options(Protocol.NFS, custom_options)
        entry = ShareEntry(
            identity=target,
            protocol=Protocol.NFS,
            target=target,
            access_scope=scope,
            access_mode=access_mode,
            options=options,
        )
        return self.create(entry)

    def create_smb_share(self, name: str, target: str, access_mode: AccessMode = AccessMode.READ_WRITE,
                         custom_options: RawOptions = None, scope: str = "") -> ShareResult:
        custom = split_raw_options(Protocol.SMB, custom_options)
        options = list(custom)
        if not any(option_key(Protocol.SMB, o) == "browseable" for o in custom):
            options.insert(0, "browseable = yes")
        entry = ShareEntry(
            identity=name,
            protocol=Protocol.SMB,
            target=target,
            access_scope=scope,
            access_mode=access_mode,
            options=options,
        )
        return self.create(entry)

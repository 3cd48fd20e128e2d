import logging
import os
import shutil
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from sharectl.config.settings import config
from sharectl.errors import FilePermissionError, NoBackupFound, ReloadFailed, ServiceError, ShareError
from sharectl.shares.models import Protocol
from sharectl.shares.sync import locked

logger = logging.getLogger(__name__)

class RestoreResult(BaseModel):
    restored: List[str] = []
    skipped: List[str] = []

class BackupManager:
    """Single-generation copies of /etc/exports and smb.conf.

    Each snapshot overwrites the previous one; there is no history.
    """

    def __init__(self, exports_path: Optional[str] = None, smb_conf_path: Optional[str] = None,
                 suffix: Optional[str] = None, services=None):
        self.files = {
            Protocol.NFS: exports_path or config.exports_path,
            Protocol.SMB: smb_conf_path or config.smb_conf_path,
        }
        self.suffix = suffix or config.backup_suffix
        self._services = services

    @property
    def services(self):
        if self._services is None:
            from sharectl.systemd.manager import SystemdManager
            self._services = SystemdManager()
        return self._services

    def get_backup_path(self, path: str) -> str:
        return f"{path}{self.suffix}"

    def _copy(self, source: str, destination: str, lock_path: str) -> None:
        try:
            with locked(lock_path):
                shutil.copyfile(source, destination)
        except PermissionError as e:
            raise FilePermissionError(destination, str(e)) from e
        except OSError as e:
            raise ShareError(f"Failed to copy {source} to {destination}: {e}") from e

    def snapshot(self) -> List[str]:
        """Copy both config files next to themselves. Returns the backups written."""
        written = []
        for protocol, path in self.files.items():
            if not os.path.exists(path):
                logger.warning(f"Skipping backup of {path}: file does not exist")
                continue
            backup_path = self.get_backup_path(path)
            self._copy(path, backup_path, path)
            logger.info(f"Backed up {path} to {backup_path}")
            written.append(backup_path)
        return written

    def restore(self) -> RestoreResult:
        """Copy the backups over the live files and reload the affected services.

        A missing backup is skipped; only when neither exists is this an error.
        """
        result = RestoreResult()
        restored_protocols = []
        for protocol, path in self.files.items():
            backup_path = self.get_backup_path(path)
            if not os.path.exists(backup_path):
                logger.warning(f"No backup found for {path}, skipping")
                result.skipped.append(path)
                continue
            self._copy(backup_path, path, path)
            logger.info(f"Restored {path} from {backup_path}")
            result.restored.append(path)
            restored_protocols.append(protocol)

        if not result.restored:
            raise NoBackupFound(
                "No backup found: " + ", ".join(self.get_backup_path(p) for p in self.files.values())
            )

        failures = []
        for protocol in restored_protocols:
            try:
                self.services.reload_share_service(protocol)
            except ServiceError as e:
                logger.error(f"Reloading {protocol.value} service after restore failed: {e}")
                failures.append(f"{protocol.value}: {e}")
        if failures:
            raise ReloadFailed(
                f"Restored {', '.join(result.restored)} but reloading failed ({'; '.join(failures)})"
            )
        return result

    def list_backups(self) -> List[Dict[str, Any]]:
        backups = []
        for protocol, path in self.files.items():
            backup_path = self.get_backup_path(path)
            if not os.path.isfile(backup_path):
                continue
            backups.append({
                "protocol": protocol.value,
                "source": path,
                "path": backup_path,
                "size": os.path.getsize(backup_path),
                "mtime": os.path.getmtime(backup_path)
            })
        return backups

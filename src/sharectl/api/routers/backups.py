from fastapi import APIRouter, Depends
from fastapi.logger import logger

from sharectl.api.dtos import DataResponse, SuccessResponse
from sharectl.api.errors import to_http_error
from sharectl.api.session import get_share_manager, session_lock
from sharectl.backups.manager import BackupManager
from sharectl.errors import ReloadFailed
from sharectl.shares.manager import ShareManager
from sharectl.shares.models import Protocol

router = APIRouter(prefix="/backups", tags=["Backups"])


@router.get("", response_model=DataResponse)
def list_backups_endpoint():
    try:
        return DataResponse(data=BackupManager().list_backups())
    except Exception as e:
        raise to_http_error(e, "listing backups")


@router.post("", response_model=DataResponse)
def create_backup_endpoint():
    try:
        written = BackupManager().snapshot()
        return DataResponse(message=f"{len(written)} backup(s) written.", data=written)
    except Exception as e:
        raise to_http_error(e, "creating backup")


@router.post("/restore", response_model=SuccessResponse)
def restore_backup_endpoint(manager: ShareManager = Depends(get_share_manager)):
    with session_lock:
        try:
            result = BackupManager(
                exports_path=manager.synchronizers[Protocol.NFS].path,
                smb_conf_path=manager.synchronizers[Protocol.SMB].path,
                services=manager.services,
            ).restore()
        except ReloadFailed as e:
            # the files were restored, so the session must follow them
            manager.load()
            raise to_http_error(e, "restoring backup")
        except Exception as e:
            raise to_http_error(e, "restoring backup")
        manager.load()

    logger.info(f"Restored {', '.join(result.restored)}; registries reloaded")
    message = f"Restored {', '.join(result.restored)}."
    if result.skipped:
        message += f" No backup for {', '.join(result.skipped)}."
    return SuccessResponse(message=message)

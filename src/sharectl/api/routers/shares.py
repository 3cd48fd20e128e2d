from fastapi import APIRouter, Depends, HTTPException
from fastapi.logger import logger

from sharectl.api.dtos import (
    DriftResponse,
    NFSShareCreate,
    OptionsRemove,
    ShareListResponse,
    ShareResponse,
    ShareUpdate,
    SMBShareCreate,
    SuccessResponse,
)
from sharectl.api.errors import to_http_error
from sharectl.api.session import get_share_manager, session_lock
from sharectl.shares.manager import ShareManager
from sharectl.shares.models import Protocol, ShareChanges

router = APIRouter(prefix="/shares", tags=["Shares"])


def _changes(update: ShareUpdate) -> ShareChanges:
    if update.options is not None and update.add_options is not None:
        raise HTTPException(status_code=400, detail="'options' and 'add_options' are mutually exclusive.")
    return ShareChanges(
        target=update.path,
        access_scope=update.scope,
        access_mode=update.access,
        options=update.options,
        add_options=update.add_options,
    )


@router.get("/nfs", response_model=ShareListResponse)
def list_nfs_shares_endpoint(manager: ShareManager = Depends(get_share_manager)):
    with session_lock:
        return ShareListResponse(data=manager.list_shares(Protocol.NFS))


@router.post("/nfs", response_model=ShareResponse)
def create_nfs_share_endpoint(share: NFSShareCreate, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.create_nfs_share(share.path, share.network, share.file_type, share.access,
                                              share.options)
            return ShareResponse(message=f"Export {result.share.identity} created.", data=result.share,
                                 warnings=result.warnings)
    except Exception as e:
        raise to_http_error(e, "creating NFS export")


@router.post("/nfs/options/remove/{identity:path}", response_model=ShareResponse)
def remove_nfs_options_endpoint(identity: str, body: OptionsRemove,
                                manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.remove_options(Protocol.NFS, "/" + identity.lstrip("/"), body.options)
            return ShareResponse(message="Options removed.", data=result.share, warnings=result.warnings)
    except Exception as e:
        raise to_http_error(e, "removing NFS export options")


@router.get("/nfs/{identity:path}", response_model=ShareResponse)
def get_nfs_share_endpoint(identity: str, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            return ShareResponse(data=manager.get_share(Protocol.NFS, "/" + identity.lstrip("/")))
    except Exception as e:
        raise to_http_error(e, "getting NFS export")


@router.patch("/nfs/{identity:path}", response_model=ShareResponse)
def edit_nfs_share_endpoint(identity: str, update: ShareUpdate,
                            manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.edit(Protocol.NFS, "/" + identity.lstrip("/"), _changes(update))
            return ShareResponse(message="Export updated.", data=result.share, warnings=result.warnings)
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_error(e, "editing NFS export")


@router.delete("/nfs/{identity:path}", response_model=SuccessResponse)
def remove_nfs_share_endpoint(identity: str, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            removed = manager.remove(Protocol.NFS, "/" + identity.lstrip("/"))
            return SuccessResponse(message=f"Export {removed.identity} removed.")
    except Exception as e:
        raise to_http_error(e, "removing NFS export")


@router.get("/smb", response_model=ShareListResponse)
def list_smb_shares_endpoint(manager: ShareManager = Depends(get_share_manager)):
    with session_lock:
        return ShareListResponse(data=manager.list_shares(Protocol.SMB))


@router.post("/smb", response_model=ShareResponse)
def create_smb_share_endpoint(share: SMBShareCreate, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.create_smb_share(share.name, share.path, share.access, share.options, share.users)
            return ShareResponse(message=f"Share {result.share.identity} created.", data=result.share,
                                 warnings=result.warnings)
    except Exception as e:
        raise to_http_error(e, "creating SMB share")


@router.get("/smb/{name}", response_model=ShareResponse)
def get_smb_share_endpoint(name: str, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            return ShareResponse(data=manager.get_share(Protocol.SMB, name))
    except Exception as e:
        raise to_http_error(e, "getting SMB share")


@router.patch("/smb/{name}", response_model=ShareResponse)
def edit_smb_share_endpoint(name: str, update: ShareUpdate, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.edit(Protocol.SMB, name, _changes(update))
            return ShareResponse(message="Share updated.", data=result.share, warnings=result.warnings)
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_error(e, "editing SMB share")


@router.post("/smb/{name}/options/remove", response_model=ShareResponse)
def remove_smb_options_endpoint(name: str, body: OptionsRemove,
                                manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            result = manager.remove_options(Protocol.SMB, name, body.options)
            return ShareResponse(message="Options removed.", data=result.share, warnings=result.warnings)
    except Exception as e:
        raise to_http_error(e, "removing SMB share options")


@router.delete("/smb/{name}", response_model=SuccessResponse)
def remove_smb_share_endpoint(name: str, manager: ShareManager = Depends(get_share_manager)):
    try:
        with session_lock:
            removed = manager.remove(Protocol.SMB, name)
            return SuccessResponse(message=f"Share {removed.identity} removed.")
    except Exception as e:
        raise to_http_error(e, "removing SMB share")


@router.get("/drift", response_model=DriftResponse)
def drift_endpoint(manager: ShareManager = Depends(get_share_manager)):
    """Compare the in-memory shares with what is on disk right now."""
    try:
        with session_lock:
            reports = manager.drift()
            for protocol, report in reports.items():
                if report.has_drift:
                    logger.warning(f"{protocol.value} config {report.path} has drifted from the registry")
            return DriftResponse(data={protocol.value: report for protocol, report in reports.items()})
    except Exception as e:
        raise to_http_error(e, "checking drift")

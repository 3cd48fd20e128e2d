import traceback
import logging
from fastapi import APIRouter, HTTPException

from sharectl.api.dtos import SystemdServiceListResponse, SystemdServiceResponse
from sharectl.errors import ServiceError
from sharectl.systemd.manager import SystemdManager

router = APIRouter(prefix="/services", tags=["Services"])
logger = logging.getLogger(__name__)

@router.get("", response_model=SystemdServiceListResponse)
def list_services():
    """List the NFS and Samba services found on this host."""
    logger.info("Listing share services")
    try:
        manager = SystemdManager()
        return SystemdServiceListResponse(data=manager.list_services())
    except Exception as e:
        logger.error(f"Error listing services: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{service_name}", response_model=SystemdServiceResponse)
def get_service(service_name: str):
    """Status of one service, by key (nfs or smb)."""
    try:
        manager = SystemdManager()
        status = manager.get_service_status(service_name)
        if not status:
            raise HTTPException(status_code=404, detail="Service not found")
        return SystemdServiceResponse(data=status)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting service {service_name}: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/{service_name}/{action}", response_model=SystemdServiceResponse)
def manage_service(service_name: str, action: str):
    """Start, stop, restart, reload, enable or disable a service."""
    logger.info(f"Managing service {service_name}: action={action}")
    try:
        manager = SystemdManager()
        status = manager.manage_service(service_name, action)
        return SystemdServiceResponse(data=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Error managing service {service_name}: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))

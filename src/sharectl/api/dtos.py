from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from sharectl.shares.models import AccessMode, DriftReport, FileType, ShareEntry
from sharectl.systemd.models import SystemdServiceStatus


class BaseResponse(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class SuccessResponse(BaseResponse):
    pass


class NFSShareCreate(BaseModel):
    path: str
    network: str
    file_type: FileType = FileType.NORMAL
    access: AccessMode = AccessMode.READ_WRITE
    options: Optional[str] = None


class SMBShareCreate(BaseModel):
    name: str
    path: str
    access: AccessMode = AccessMode.READ_WRITE
    users: str = ""
    options: List[str] = []


class ShareUpdate(BaseModel):
    path: Optional[str] = None
    scope: Optional[str] = None
    access: Optional[AccessMode] = None
    options: Optional[Union[str, List[str]]] = None
    add_options: Optional[Union[str, List[str]]] = None


class OptionsRemove(BaseModel):
    options: Union[str, List[str]]


class ShareResponse(BaseResponse):
    data: Optional[ShareEntry] = None
    warnings: List[str] = []


class ShareListResponse(BaseResponse):
    data: List[ShareEntry] = []


class DriftResponse(BaseResponse):
    data: Dict[str, DriftReport] = {}


class SystemdServiceResponse(BaseResponse):
    data: Optional[SystemdServiceStatus] = None


class SystemdServiceListResponse(BaseResponse):
    data: List[SystemdServiceStatus] = []


class DataResponse(BaseResponse):
    data: Optional[Union[
        List[str],
        List[Dict[str, Any]],
        Dict[str, Any]
    ]] = None

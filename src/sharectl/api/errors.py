import logging
import traceback

from fastapi import HTTPException

from sharectl.errors import (
    AmbiguousMatch,
    DuplicateShare,
    FilePermissionError,
    InvalidOptionFormat,
    InvalidShare,
    NoBackupFound,
    ReloadFailed,
    ServiceError,
    ShareError,
    ShareNotFound,
)

logger = logging.getLogger(__name__)

STATUS_CODES = [
    (InvalidOptionFormat, 400),
    (InvalidShare, 400),
    (ShareNotFound, 404),
    (NoBackupFound, 404),
    (DuplicateShare, 409),
    (AmbiguousMatch, 409),
    (FilePermissionError, 403),
    (ReloadFailed, 502),
    (ServiceError, 502),
]


def to_http_error(e: Exception, action: str) -> HTTPException:
    for error_type, status_code in STATUS_CODES:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=str(e))
    if not isinstance(e, ShareError):
        logger.error(f"Error {action}: {e}\n{traceback.format_exc()}")
    return HTTPException(status_code=500, detail=str(e))

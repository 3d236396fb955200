from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class CampusException(HTTPException):
    """HTTPException carrying its own status code and a fallback message."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=self.default_status, detail=detail or self.default_detail, headers=headers)

class NotFoundException(CampusException):
    default_status = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"

class ForbiddenException(CampusException):
    default_status = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"

class BadRequestException(CampusException):
    default_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"

class UnauthorizedException(CampusException):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_detail = "unauthorized"

class InvalidCredentialsException(UnauthorizedException):
    default_detail = "Invalid email or password"

class InternalServerException(CampusException):
    pass

# Guard denials only ever carry one of these
_BY_STATUS = {
    exception.default_status: exception
    for exception in (NotFoundException, ForbiddenException, BadRequestException, UnauthorizedException, InternalServerException)
}

def exception_for_status(status_code: int, detail: Any) -> HTTPException:
    exception = _BY_STATUS.get(status_code)
    if exception is None:
        return HTTPException(status_code=status_code, detail=detail)
    return exception(detail=detail)

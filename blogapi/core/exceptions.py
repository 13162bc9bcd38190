from fastapi import HTTPException
from typing import Dict, Any


class BaseAPIException(HTTPException):
    """Base exception class for API errors"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str,
        additional_info: Dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code
        self.additional_info = additional_info or {}


class ResourceNotFoundError(BaseAPIException):
    """Raised when a referenced article, text or category does not exist"""

    def __init__(self, resource: str, resource_id: Any | None = None):
        additional_info = {"resource": resource}
        if resource_id is not None:
            additional_info["id"] = resource_id
        super().__init__(
            status_code=404,
            detail=f"{resource} not found",
            error_code="RESOURCE_NOT_FOUND",
            additional_info=additional_info,
        )


class PermissionDeniedError(BaseAPIException):
    """Raised when the role is insufficient or a non-owner tries to mutate"""

    def __init__(self, detail: str = "Permission denied."):
        super().__init__(
            status_code=403,
            detail=detail,
            error_code="PERMISSION_DENIED",
        )


class InvalidParameterError(BaseAPIException):
    """Raised when a request parameter is missing or malformed"""

    def __init__(self, parameter: str, detail: str | None = None):
        super().__init__(
            status_code=400,
            detail=detail or f"Invalid parameter: {parameter}",
            error_code="PARAMETER_INVALID",
            additional_info={"parameter": parameter},
        )

from .exceptions import (
    BaseAPIException,
    ResourceNotFoundError,
    PermissionDeniedError,
    InvalidParameterError,
)
from .logging import setup_logging

__all__ = [
    "BaseAPIException",
    "ResourceNotFoundError",
    "PermissionDeniedError",
    "InvalidParameterError",
    "setup_logging",
]

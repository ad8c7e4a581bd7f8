"""Core 모듈"""

from app.core.cache import LRUCache
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.exceptions import (
    BadRequestException,
    BaseAPIException,
    ErrorCode,
    InternalServerException,
    UnauthorizedException,
)
from app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "Base",
    "get_db",
    "LRUCache",
    "ErrorCode",
    "BaseAPIException",
    "BadRequestException",
    "UnauthorizedException",
    "InternalServerException",
    "get_logger",
    "setup_logging",
]

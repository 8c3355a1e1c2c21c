"""Core utilities and configuration for RunMemories"""
from core.config import settings
from core.exceptions import ExternalAPIError, RunMemoriesError, ValidationError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "RunMemoriesError",
    "ValidationError",
    "ExternalAPIError",
]

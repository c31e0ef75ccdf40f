"""
Transfer domain module
"""
from .models import (
    UploadConfig,
    TransferPlan,
    ProgressSample,
    TransferResult,
)
from .engine import TransferEngine, ProgressCallback
from .service import UploadService

__all__ = [
    "UploadConfig",
    "TransferPlan",
    "ProgressSample",
    "TransferResult",
    "TransferEngine",
    "ProgressCallback",
    "UploadService",
]

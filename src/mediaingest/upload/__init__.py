"""Upload boundary: storage-provider transports and batch orchestration."""

from .batch import async_upload_batch, upload_batch
from .retries import compute_backoff, should_retry
from .state import UploadStateMachine
from .transport import AsyncUploadTransport, UploadTransport

__all__ = [
    "AsyncUploadTransport",
    "UploadStateMachine",
    "UploadTransport",
    "async_upload_batch",
    "compute_backoff",
    "should_retry",
    "upload_batch",
]

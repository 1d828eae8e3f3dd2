"""
1fichier SDK - Asynchronous Python client for the 1fichier file hosting API.

This package provides:
- Batched multipart uploads (100 files per relay round)
- Folder path resolution and creation
- Recursive folder removal that waits for deletions to become visible
- Temporary download links, file moves, renames and attribute changes
- A process-wide throttle keeping every client within 3 requests per second
- CLI tools for power users
"""

__version__ = "1.0.0"

from .async_client import AsyncFichierClient
from .models import (
    AccessControl,
    FileAttributes,
    FileDetails,
    FileInfo,
    FolderInfo,
    MoveFilesResult,
    SubFolderInfo,
    UploadResult,
)
from .ratelimit import RateLimiter, IntervalGuard, get_default_limiter
from .exceptions import (
    FichierError,
    CredentialError,
    ServerRejectedError,
    UploadNodeError,
    UploadFailedError,
    FolderNotFoundError,
    FileNotFoundError,
    AbuseGuardError,
    ConvergenceTimeoutError,
)

__all__ = [
    # Main client
    "AsyncFichierClient",

    # Throttling
    "RateLimiter",
    "IntervalGuard",
    "get_default_limiter",

    # Data models
    "AccessControl",
    "FileAttributes",
    "FileDetails",
    "FileInfo",
    "FolderInfo",
    "MoveFilesResult",
    "SubFolderInfo",
    "UploadResult",

    # Exceptions
    "FichierError",
    "CredentialError",
    "ServerRejectedError",
    "UploadNodeError",
    "UploadFailedError",
    "FolderNotFoundError",
    "FileNotFoundError",
    "AbuseGuardError",
    "ConvergenceTimeoutError",
]

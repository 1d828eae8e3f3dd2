"""
Asynchronous 1fichier client implementation.

This module provides the async/await client that ties together the request
executor, the upload pipeline and the folder algorithms. All clients in a
process share one rate limiter unless another one is injected.
"""

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

import aiohttp

from .api import FichierApi
from .executor import API_ENDPOINT, RequestExecutor
from .folders import MAX_POLLS, POLL_INTERVAL, FolderEraser, PathResolver
from .models import FileAttributes, FileDetails, FileInfo, FolderInfo, MoveFilesResult, UploadResult
from .ratelimit import IntervalGuard, RateLimiter
from .upload import UploadPipeline


class AsyncFichierClient:
    """
    Asynchronous client for the 1fichier API.

    Every method issues its requests through a shared throttle of three
    operations per second. Nothing is cached between calls.

    Example:
        async with AsyncFichierClient(api_key="...") as client:
            folder_id = await client.make_path("/backups/2024")
            with open("db.sql.gz", "rb") as f:
                results = await client.upload_files({"db.sql.gz": f}, folder_id)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        proxy: Optional[str] = None,
        endpoint: str = API_ENDPOINT,
        timeout: int = 30,
        rate_limiter: Optional[RateLimiter] = None,
        list_all_guard: Optional[IntervalGuard] = None,
        poll_interval: float = POLL_INTERVAL,
        max_polls: int = MAX_POLLS,
        upload_timeout: Optional[aiohttp.ClientTimeout] = None,
    ):
        """
        Initialize the async 1fichier client.

        Args:
            api_key: API key (can also use ONEFICHIER_API_KEY env var); only
                anonymous uploads work without one
            proxy: Proxy URL (can also use ONEFICHIER_PROXY env var)
            endpoint: API base URL
            timeout: Request timeout in seconds
            rate_limiter: Throttle shared with other clients; process-wide by default
            list_all_guard: Guard for listing every file; process-wide by default
            poll_interval: Seconds between polls while waiting for deletions to show
            max_polls: Polls allowed per folder before giving up
            upload_timeout: Timeout for relay uploads; only connect and read
                stalls are bounded by default
        """
        self.executor = RequestExecutor(
            api_key=api_key,
            proxy=proxy,
            endpoint=endpoint,
            timeout=timeout,
            rate_limiter=rate_limiter,
            upload_timeout=upload_timeout,
        )
        self.api = FichierApi(self.executor, list_all_guard=list_all_guard)
        self.uploads = UploadPipeline(self.executor)
        self.paths = PathResolver(self.api)
        self.eraser = FolderEraser(self.api, poll_interval=poll_interval, max_polls=max_polls)

    @property
    def api_key(self) -> Optional[str]:
        return self.executor.api_key

    @property
    def endpoint(self) -> str:
        return self.executor.endpoint

    async def upload_files(
        self,
        files: Mapping[str, Any],
        folder_id: int = 0,
        domain: int = 0,
    ) -> List[UploadResult]:
        """
        Upload files, 100 per round.

        Args:
            files: File name to binary file object, bytes or str. File objects
                are closed once read.
            folder_id: Destination folder id, 0 for the root folder. Without an
                API key the folder id has no effect.
            domain: Target domain id, 0 for 1fichier.com

        Returns:
            One UploadResult per file
        """
        return await self.uploads.upload(files, folder_id=folder_id, domain=domain)

    async def list_folder(self, folder_id: int, list_files: bool = False, sharing_user: Optional[str] = None) -> FolderInfo:
        """List a folder. See FichierApi.list_folder."""
        return await self.api.list_folder(folder_id, list_files=list_files, sharing_user=sharing_user)

    async def make_folder(self, name: str, parent_id: int = 0, sharing_user: Optional[str] = None) -> int:
        """Create one folder and return its id."""
        return await self.api.make_folder(name, parent_id=parent_id, sharing_user=sharing_user)

    async def remove_folder(self, folder_id: int, recursive: bool = False, wait_for_consistency: bool = False):
        """
        Remove a folder.

        Args:
            folder_id: Folder to remove
            recursive: Remove sub-folders and files as well
            wait_for_consistency: Wait until deleted files stop being listed
                before removing each folder
        """
        await self.eraser.remove(folder_id, recursive=recursive, wait_for_consistency=wait_for_consistency)

    async def remove_files(self, urls: Iterable[str]) -> int:
        """Remove files by download link; returns the number removed."""
        return await self.api.remove_files(urls)

    async def get_download_link(self, url: Optional[str] = None, **kwargs) -> str:
        """Get a temporary download link. See FichierApi.get_download_link."""
        return await self.api.get_download_link(url, **kwargs)

    async def get_folder_id(self, path: str) -> int:
        """Resolve a folder path such as ``/doc/test`` to its id."""
        return await self.paths.resolve(path)

    async def make_path(self, path: str) -> int:
        """Resolve a folder path, creating missing folders, and return its id."""
        return await self.paths.ensure(path)

    async def list_files(
        self,
        folder_id: int,
        sharing_user: Optional[str] = None,
        sent_after: Optional[datetime] = None,
        sent_before: Optional[datetime] = None,
    ) -> List[FileInfo]:
        """List the files of a folder; -1 lists every file, at most once per 10 minutes."""
        return await self.api.list_files(
            folder_id,
            sharing_user=sharing_user,
            sent_after=sent_after,
            sent_before=sent_before,
        )

    async def get_file_info(self, path: str) -> FileInfo:
        """Find a file by path, e.g. ``/doc/test.txt``."""
        return await self.paths.resolve_file(path)

    async def get_file_details(self, url: Optional[str] = None, **kwargs) -> FileDetails:
        """Get full information about a file. See FichierApi.get_file_details."""
        return await self.api.get_file_details(url, **kwargs)

    async def change_files_attributes(self, attributes: FileAttributes) -> int:
        return await self.api.change_files_attributes(attributes)

    async def move_files(self, urls: Iterable[str], destination_folder_id: int, sharing_user: Optional[str] = None) -> MoveFilesResult:
        return await self.api.move_files(urls, destination_folder_id, sharing_user=sharing_user)

    async def rename_files(self, files: Mapping[str, str]) -> int:
        """Rename files; ``files`` maps download link to new name."""
        return await self.api.rename_files(files)

    async def close(self):
        """Close the client session."""
        await self.executor.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

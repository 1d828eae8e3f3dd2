"""
Folder path resolution and recursive folder removal.

Nothing here caches the remote tree: every step lists the folder again, so
concurrent changes made elsewhere are always seen. Two callers creating the
same path at the same time may both create it; the service decides.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from .api import FichierApi
from .exceptions import ConvergenceTimeoutError, FileNotFoundError, FolderNotFoundError, ServerRejectedError
from .models import FileInfo, FolderInfo
from .utils import split_path

logger = logging.getLogger(__name__)

ROOT_FOLDER_ID = 0
POLL_INTERVAL = 1.0
MAX_POLLS = 60


class PathResolver:
    """Maps ``/``-delimited folder paths to folder ids, one level per listing."""

    def __init__(self, api: FichierApi):
        self.api = api

    async def _step(self, parent_id: int, name: str) -> Optional[int]:
        listing = await self.api.list_folder(parent_id)
        sub_folder = listing.find_sub_folder(name)
        return sub_folder.id if sub_folder else None

    async def resolve(self, path: str) -> int:
        """
        Return the id of an existing folder.

        Raises:
            FolderNotFoundError: Some segment of ``path`` does not exist
        """
        folder_id = ROOT_FOLDER_ID
        for name in split_path(path):
            next_id = await self._step(folder_id, name)
            if next_id is None:
                raise FolderNotFoundError(path)
            folder_id = next_id
        return folder_id

    async def ensure(self, path: str) -> int:
        """Return the id of a folder, creating every missing segment."""
        folder_id = ROOT_FOLDER_ID
        for name in split_path(path):
            next_id = await self._step(folder_id, name)
            if next_id is None:
                next_id = await self.api.make_folder(name, folder_id)
            folder_id = next_id
        return folder_id

    async def resolve_file(self, path: str) -> FileInfo:
        """
        Find a file by path, e.g. ``/doc/report.pdf``.

        Raises:
            FileNotFoundError: A folder segment or the file itself is missing
        """
        segments = split_path(path)
        if not segments:
            raise FileNotFoundError(path)

        try:
            folder_id = await self.resolve("/".join(segments[:-1]))
        except FolderNotFoundError:
            raise FileNotFoundError(path) from None

        for item in await self.api.list_files(folder_id):
            if item.filename == segments[-1]:
                return item
        raise FileNotFoundError(path)


class FolderEraser:
    """
    Removes folders, optionally with everything inside them.

    The service keeps listing deleted files for a short while and refuses to
    remove a folder that still lists files. With ``wait_for_consistency`` the
    eraser polls each folder once per ``poll_interval`` and deletes whatever
    is still listed, for at most ``max_polls`` polls.
    """

    def __init__(
        self,
        api: FichierApi,
        poll_interval: float = POLL_INTERVAL,
        max_polls: int = MAX_POLLS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_polls < 1:
            raise ValueError("max_polls must be at least 1")
        self.api = api
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep

    async def remove(self, folder_id: int, recursive: bool = False, wait_for_consistency: bool = False):
        """
        Remove a folder.

        Args:
            folder_id: Folder to remove
            recursive: Remove sub-folders and files first, depth first
            wait_for_consistency: Before removing each folder, wait until the
                service stops listing its deleted files

        Raises:
            ConvergenceTimeoutError: A folder kept listing files after ``max_polls`` polls
        """
        if not recursive:
            await self.api.remove_empty_folder(folder_id)
            return

        # (folder id, listing); a None listing means the folder is not expanded yet.
        stack: List[Tuple[int, Optional[FolderInfo]]] = [(folder_id, None)]
        while stack:
            current_id, listing = stack.pop()
            if listing is None:
                listing = await self.api.list_folder(current_id, list_files=True)
                stack.append((current_id, listing))
                for sub_folder in reversed(listing.sub_folders):
                    stack.append((sub_folder.id, None))
                continue

            await self._clear_files(current_id, listing, wait_for_consistency)
            await self.api.remove_empty_folder(current_id)

    async def _clear_files(self, folder_id: int, listing: FolderInfo, wait: bool):
        urls = [item.url for item in listing.items]
        if not urls:
            return

        removed = await self.api.remove_files(urls)
        logger.debug("Removed %d of %d file(s) from folder %d", removed, len(urls), folder_id)
        if wait:
            await self._wait_until_empty(folder_id)

    async def _wait_until_empty(self, folder_id: int):
        remaining = -1
        for poll in range(1, self.max_polls + 1):
            last = poll == self.max_polls
            try:
                listing = await self.api.list_folder(folder_id, list_files=True)
                if listing.files == 0 or not listing.items:
                    return
                remaining = listing.files
                logger.debug("Folder %d still lists %d file(s) after poll %d", folder_id, remaining, poll)
                if last:
                    break
                await self._sleep(self.poll_interval)
                await self.api.remove_files([item.url for item in listing.items])
            except ServerRejectedError as e:
                logger.warning("Poll %d for folder %d failed: %s", poll, folder_id, e)
                if not last:
                    await self._sleep(self.poll_interval)

        raise ConvergenceTimeoutError(folder_id, self.max_polls, remaining)

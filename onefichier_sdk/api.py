"""
Single-call API endpoints.

Each method here maps to exactly one request through the RequestExecutor
and therefore one throttle slot. Multi-call algorithms (uploads, path
resolution, recursive removal) are built on top of this class.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .executor import RequestExecutor
from .models import (
    FileAttributes,
    FileDetails,
    FileInfo,
    FileListResult,
    FolderInfo,
    MoveFilesResult,
)
from .ratelimit import IntervalGuard, get_default_list_all_guard
from .utils import drop_none, encode_bool, format_api_datetime

logger = logging.getLogger(__name__)

ALL_FILES = -1


class FichierApi:
    """Thin wrappers around the JSON endpoints of the 1fichier API."""

    def __init__(self, executor: RequestExecutor, list_all_guard: Optional[IntervalGuard] = None):
        self.executor = executor
        self.list_all_guard = list_all_guard or get_default_list_all_guard()

    # Folders

    async def list_folder(
        self,
        folder_id: int,
        list_files: bool = False,
        sharing_user: Optional[str] = None,
    ) -> FolderInfo:
        """
        List a folder's immediate sub-folders and, optionally, its files.

        Args:
            folder_id: Folder id, 0 for the root folder
            list_files: Include the files of the folder in ``items``
            sharing_user: Owner email when the folder is shared by another user
        """
        payload = drop_none({
            "folder_id": folder_id,
            "files": encode_bool(list_files),
            "sharing_user": sharing_user,
        })
        return await self.executor.call("folder/ls.cgi", payload, model=FolderInfo)

    async def make_folder(self, name: str, parent_id: int = 0, sharing_user: Optional[str] = None) -> int:
        """Create a folder and return its id."""
        payload = drop_none({
            "name": name,
            "folder_id": parent_id,
            "sharing_user": sharing_user,
        })
        result = await self.executor.call("folder/mkdir.cgi", payload)
        folder_id = int(result["folder_id"])
        logger.info("Created folder %r (%d) under %d", name, folder_id, parent_id)
        return folder_id

    async def remove_empty_folder(self, folder_id: int):
        """Remove a folder. The service refuses folders that still hold files."""
        await self.executor.call("folder/rm.cgi", {"folder_id": folder_id})
        logger.info("Removed folder %d", folder_id)

    # Files

    async def remove_files(self, urls: Iterable[str]) -> int:
        """
        Remove files by download link in one call.

        Returns:
            The number of files the service removed; 0 without a call when
            ``urls`` is empty
        """
        files = [{"url": url} for url in urls]
        if not files:
            return 0
        result = await self.executor.call("file/rm.cgi", {"files": files})
        return int(result.get("removed") or 0)

    async def list_files(
        self,
        folder_id: int,
        sharing_user: Optional[str] = None,
        sent_after: Optional[datetime] = None,
        sent_before: Optional[datetime] = None,
    ) -> List[FileInfo]:
        """
        List the files of a folder.

        Passing ``folder_id=-1`` lists every file of the account. That form is
        allowed once per 10 minutes per process; a call made sooner raises
        AbuseGuardError before any request is sent.
        """
        if folder_id == ALL_FILES:
            self.list_all_guard.check()

        payload = drop_none({
            "folder_id": folder_id,
            "sharing_user": sharing_user,
            "sent_after": format_api_datetime(sent_after) if sent_after else None,
            "sent_before": format_api_datetime(sent_before) if sent_before else None,
        })
        result = await self.executor.call("file/ls.cgi", payload, model=FileListResult)
        return result.items

    async def get_file_details(
        self,
        url: Optional[str] = None,
        password: Optional[str] = None,
        sharing_user: Optional[str] = None,
        folder_id: int = 0,
        filename: Optional[str] = None,
    ) -> FileDetails:
        """
        Get full information about a file.

        The file is identified by ``url``, or by ``folder_id`` and
        ``filename`` when a filename is given.
        """
        if filename:
            payload = {"folder_id": folder_id, "filename": filename}
        else:
            payload = {"url": url}
        payload.update(drop_none({"pass": password, "sharing_user": sharing_user}))
        return await self.executor.call("file/info.cgi", payload, model=FileDetails)

    async def change_files_attributes(self, attributes: FileAttributes) -> int:
        """Apply attribute changes and return the number of files updated."""
        result = await self.executor.call("file/chattr.cgi", attributes.to_dict())
        return int(result.get("updated") or 0)

    async def move_files(
        self,
        urls: Iterable[str],
        destination_folder_id: int,
        sharing_user: Optional[str] = None,
    ) -> MoveFilesResult:
        payload = drop_none({
            "urls": list(urls),
            "destination_folder_id": destination_folder_id,
            "destination_user": sharing_user,
        })
        return await self.executor.call("file/mv.cgi", payload, model=MoveFilesResult)

    async def rename_files(self, files: Mapping[str, str]) -> int:
        """
        Rename files.

        Args:
            files: Download link to new file name

        Returns:
            The number of files renamed; 0 without a call for an empty mapping
        """
        if not files:
            return 0
        payload = {
            "urls": [{"url": url, "filename": name} for url, name in files.items()],
            "pretty": 0,
        }
        result = await self.executor.call("file/rename.cgi", payload)
        return int(result.get("renamed") or 0)

    # Downloads

    async def get_download_link(
        self,
        url: Optional[str] = None,
        password: Optional[str] = None,
        inline: bool = True,
        cdn: bool = False,
        restrict_ip: int = 0,
        no_ssl: bool = False,
        sharing_user: Optional[str] = None,
        folder_id: int = 0,
        filename: Optional[str] = None,
    ) -> str:
        """
        Get a temporary download link, valid for a few minutes.

        Args:
            url: Download page link of the file
            password: File password, if any
            inline: Let the browser display the content
            cdn: Serve through the CDN
            restrict_ip: With cdn, 0 for no restriction, 1 to forbid IP changes,
                2 to forbid sub-requests
            no_ssl: Return a plain http link
            sharing_user: Owner email when the file is shared by another user
            folder_id: Folder of ``filename``
            filename: Identify the file by name instead of ``url``
        """
        payload: Dict[str, object] = {
            "inline": encode_bool(inline),
            "cdn": encode_bool(cdn),
            "restrict_ip": restrict_ip,
            "no_ssl": encode_bool(no_ssl),
        }
        if filename:
            payload.update({"folder_id": folder_id, "filename": filename})
        else:
            payload["url"] = url
        payload.update(drop_none({"pass": password, "sharing_user": sharing_user}))

        result = await self.executor.call("download/get_token.cgi", payload)
        return result["url"]

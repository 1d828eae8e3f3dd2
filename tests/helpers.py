"""Shared test helpers for onefichier_sdk tests."""

from __future__ import annotations

import io
import re
from typing import Any

from onefichier_sdk.models import FileInfo, FolderInfo, SubFolderInfo


class FakeClock:
    """Manual clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class TrackingStream(io.BytesIO):
    """BytesIO that counts reads and closes."""

    def __init__(self, data: bytes, fail: bool = False) -> None:
        super().__init__(data)
        self.fail = fail
        self.read_calls = 0
        self.close_calls = 0

    def read(self, *args: Any) -> bytes:
        self.read_calls += 1
        if self.fail:
            raise OSError("disk went away")
        return super().read(*args)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


def relay_page(body: bytes) -> str:
    """Build the confirmation page a relay would return for a multipart body."""
    names = re.findall(rb'name="file\[\]"; filename="([^"]*)"', body)
    rows = "".join(
        f"<tr><td>{name.decode()}</td><td>1 KB</td>"
        f'<td><a href="https://1fichier.com/?{index:05d}">https://1fichier.com/?{index:05d}</a></td>'
        f"<td>https://1fichier.com/remove/{index:05d}/x</td></tr>"
        for index, name in enumerate(names)
    )
    return (
        "<html><body><table class='premium'>"
        "<tr><th>File</th><th>Size</th><th>Link</th><th>Remove</th></tr>"
        f"{rows}</table></body></html>"
    )


class FakeRemote:
    """In-memory stand-in for FichierApi backed by a folder tree.

    ``lag`` is the number of listings during which a deleted file keeps being
    reported, mimicking the service's delayed consistency.
    """

    def __init__(self, lag: int = 0) -> None:
        self.lag = lag
        self.calls: list[tuple] = []
        self.folders: dict[int, dict[str, Any]] = {0: {"name": "", "parent": None, "subs": []}}
        self.files: dict[str, dict[str, Any]] = {}
        self._next_id = 100

    def add_folder(self, name: str, parent: int = 0, folder_id: int | None = None) -> int:
        if folder_id is None:
            folder_id = self._next_id
            self._next_id += 1
        self.folders[folder_id] = {"name": name, "parent": parent, "subs": []}
        self.folders[parent]["subs"].append(folder_id)
        return folder_id

    def add_file(self, folder_id: int, filename: str) -> str:
        url = f"https://1fichier.com/?{filename}"
        self.files[url] = {"folder": folder_id, "filename": filename, "deleted": False, "ghost": 0}
        return url

    def _visible_files(self, folder_id: int) -> list[FileInfo]:
        visible = []
        for url, record in self.files.items():
            if record["folder"] != folder_id:
                continue
            if record["deleted"]:
                if record["ghost"] <= 0:
                    continue
                record["ghost"] -= 1
            visible.append(FileInfo(filename=record["filename"], url=url, size=1))
        return visible

    def still_listed(self, folder_id: int) -> int:
        return sum(
            1
            for record in self.files.values()
            if record["folder"] == folder_id and (not record["deleted"] or record["ghost"] > 0)
        )

    async def list_folder(self, folder_id: int, list_files: bool = False, sharing_user: str | None = None) -> FolderInfo:
        self.calls.append(("list_folder", folder_id))
        folder = self.folders[folder_id]
        items = self._visible_files(folder_id) if list_files else []
        count = len(items) if list_files else sum(
            1 for record in self.files.values() if record["folder"] == folder_id and not record["deleted"]
        )
        return FolderInfo(
            id=folder_id,
            name=folder["name"],
            sub_folders=[SubFolderInfo(id=sub, name=self.folders[sub]["name"]) for sub in folder["subs"]],
            files=count,
            items=items,
        )

    async def make_folder(self, name: str, parent_id: int = 0, sharing_user: str | None = None) -> int:
        self.calls.append(("make_folder", name, parent_id))
        return self.add_folder(name, parent_id)

    async def remove_files(self, urls: list[str]) -> int:
        urls = list(urls)
        self.calls.append(("remove_files", tuple(urls)))
        removed = 0
        for url in urls:
            record = self.files.get(url)
            if record and not record["deleted"]:
                record["deleted"] = True
                record["ghost"] = self.lag
                removed += 1
        return removed

    async def remove_empty_folder(self, folder_id: int) -> None:
        self.calls.append(("remove_empty_folder", folder_id))
        if self.still_listed(folder_id):
            raise AssertionError(f"folder {folder_id} still lists files")
        folder = self.folders.pop(folder_id)
        self.folders[folder["parent"]]["subs"].remove(folder_id)

    async def list_files(self, folder_id: int, **kwargs: Any) -> list[FileInfo]:
        self.calls.append(("list_files", folder_id))
        return self._visible_files(folder_id)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

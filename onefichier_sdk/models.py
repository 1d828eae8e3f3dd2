"""
Data models for the 1fichier SDK.

This module defines the structures decoded from API responses and the
request objects encoded into API calls. Booleans travel as 0/1 and
timestamps as UTC+1 text; the conversions live in ``utils``.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field

from .utils import decode_bool, encode_bool, parse_api_datetime, as_list


@dataclass
class Envelope:
    """Minimal view of any API response, used to detect failures."""

    status: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Envelope":
        if not isinstance(data, dict):
            return cls()
        return cls(status=data.get("status"), message=data.get("message"))

    @property
    def is_rejected(self) -> bool:
        return self.status == "KO"


@dataclass
class UploadNode:
    """Single-use upload relay assigned by the service for one round."""

    url: str
    id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadNode":
        return cls(url=data["url"], id=str(data["id"]))

    @property
    def upload_url(self) -> str:
        return f"https://{self.url}/upload.cgi?id={self.id}"


@dataclass
class UploadResult:
    """One row of the upload confirmation table."""

    file_name: str
    file_size: str
    download_link: str
    remove_link: str


@dataclass
class AccessControl:
    """
    Access restrictions of a file.

    On requests, a field left as None is not sent and stays unchanged.
    """

    ip: Optional[List[str]] = None
    country: Optional[List[str]] = None
    email: Optional[List[str]] = None
    premium: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessControl":
        return cls(
            ip=data.get("ip"),
            country=data.get("country"),
            email=data.get("email"),
            premium=decode_bool(data.get("premium")) if "premium" in data else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.ip is not None:
            result["ip"] = list(self.ip)
        if self.country is not None:
            result["country"] = list(self.country)
        if self.email is not None:
            result["email"] = list(self.email)
        if self.premium is not None:
            result["premium"] = encode_bool(self.premium)
        return result


@dataclass
class FileInfo:
    """A file as reported by folder and file listings."""

    filename: str
    url: str
    size: int = 0
    checksum: Optional[str] = None
    content_type: Optional[str] = None
    date: Optional[datetime] = None
    acl: bool = False
    cdn: bool = False
    password_protected: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileInfo":
        """Create FileInfo from API response dictionary."""
        return cls(
            filename=data["filename"],
            url=data["url"],
            size=int(data.get("size") or 0),
            checksum=data.get("checksum"),
            content_type=data.get("content-type"),
            date=parse_api_datetime(data.get("date")),
            acl=decode_bool(data.get("acl")),
            cdn=decode_bool(data.get("cdn")),
            password_protected=decode_bool(data.get("pass")),
        )


@dataclass
class FileDetails:
    """Full information about one file (file/info.cgi)."""

    filename: str
    url: str
    size: int = 0
    checksum: Optional[str] = None
    content_type: Optional[str] = None
    date: Optional[datetime] = None
    folder_id: int = 0
    path: Optional[str] = None
    description: Optional[str] = None
    acl: Optional[AccessControl] = None
    cdn: bool = False
    inline: bool = False
    no_ssl: bool = False
    password_protected: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileDetails":
        """Create FileDetails from API response dictionary."""
        acl = data.get("acl")
        return cls(
            filename=data["filename"],
            url=data["url"],
            size=int(data.get("size") or 0),
            checksum=data.get("checksum"),
            content_type=data.get("content-type"),
            date=parse_api_datetime(data.get("date")),
            folder_id=int(data.get("folder_id") or 0),
            path=data.get("path"),
            description=data.get("description"),
            acl=AccessControl.from_dict(acl) if isinstance(acl, dict) else None,
            cdn=decode_bool(data.get("cdn")),
            inline=decode_bool(data.get("inline")),
            no_ssl=decode_bool(data.get("no_ssl")),
            password_protected=decode_bool(data.get("pass")),
        )


@dataclass
class SubFolderInfo:
    """Immediate sub-folder entry of a folder listing."""

    id: int
    name: str
    password_protected: bool = False
    create_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubFolderInfo":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            password_protected=decode_bool(data.get("pass")),
            create_date=parse_api_datetime(data.get("create_date")),
        )


@dataclass
class FolderInfo:
    """
    One remote folder as listed by folder/ls.cgi.

    ``files`` is the count reported by the server; ``items`` is only filled
    when the listing was requested with files. Neither is cached anywhere.
    """

    id: int
    name: Optional[str] = None
    sub_folders: List[SubFolderInfo] = field(default_factory=list)
    files: int = 0
    items: List[FileInfo] = field(default_factory=list)
    size: Optional[int] = None
    shared: Optional[str] = None
    password_protected: bool = False
    create_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderInfo":
        """Create FolderInfo from API response dictionary."""
        return cls(
            id=int(data.get("folder_id") or 0),
            name=data.get("name"),
            sub_folders=[SubFolderInfo.from_dict(item) for item in data.get("sub_folders") or []],
            files=int(data.get("files") or 0),
            items=[FileInfo.from_dict(item) for item in data.get("items") or []],
            size=data.get("size"),
            shared=data.get("shared"),
            password_protected=decode_bool(data.get("pass")),
            create_date=parse_api_datetime(data.get("create_date")),
        )

    def find_sub_folder(self, name: str) -> Optional[SubFolderInfo]:
        """Return the sub-folder whose name matches exactly, if any."""
        for sub_folder in self.sub_folders:
            if sub_folder.name == name:
                return sub_folder
        return None


@dataclass
class FileListResult:
    """Result of file/ls.cgi."""

    count: int = 0
    items: List[FileInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileListResult":
        items = [FileInfo.from_dict(item) for item in data.get("items") or []]
        return cls(count=int(data.get("count") or len(items)), items=items)


@dataclass
class MoveFilesResult:
    """Result of moving files: the count and the new download links."""

    moved: int = 0
    urls: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoveFilesResult":
        return cls(moved=int(data.get("moved") or 0), urls=list(data.get("urls") or []))


@dataclass
class FileAttributes:
    """
    Attribute changes for one or more files (file/chattr.cgi).

    ``urls`` identifies the files. Every other field left as None is not
    sent, so the matching attribute keeps its current value. ``filename``
    only applies when a single url is given; an empty ``password`` removes
    the password.
    """

    urls: List[str]
    filename: Optional[str] = None
    description: Optional[str] = None
    password: Optional[str] = None
    no_ssl: Optional[bool] = None
    inline: Optional[bool] = None
    cdn: Optional[bool] = None
    acl: Optional[AccessControl] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the request body."""
        result: Dict[str, Any] = {"urls": as_list(self.urls)}

        if self.filename is not None:
            result["filename"] = self.filename
        if self.description is not None:
            result["description"] = self.description
        if self.password is not None:
            result["pass"] = self.password
        if self.no_ssl is not None:
            result["no_ssl"] = encode_bool(self.no_ssl)
        if self.inline is not None:
            result["inline"] = encode_bool(self.inline)
        if self.cdn is not None:
            result["cdn"] = encode_bool(self.cdn)
        if self.acl is not None:
            acl = self.acl.to_dict()
            if acl:
                result["acl"] = acl

        return result

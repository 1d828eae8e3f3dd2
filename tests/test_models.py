"""Tests for response and request models."""

from __future__ import annotations

from datetime import datetime, timezone

from onefichier_sdk.models import (
    AccessControl,
    Envelope,
    FileAttributes,
    FileDetails,
    FolderInfo,
    MoveFilesResult,
    UploadNode,
)


FOLDER_LISTING = {
    "status": "OK",
    "folder_id": 42,
    "name": "docs",
    "create_date": "2021-05-04 10:00:00",
    "pass": 0,
    "shared": "0",
    "files": 2,
    "sub_folders": [
        {"id": 43, "name": "drafts", "create_date": "2021-05-04 11:00:00", "pass": "1"},
    ],
    "items": [
        {
            "filename": "a.txt",
            "url": "https://1fichier.com/?aaaaa",
            "size": 12,
            "checksum": "abc",
            "content-type": "text/plain",
            "date": "2021-05-05 08:00:00",
            "acl": 0,
            "cdn": 1,
            "pass": 0,
        },
        {"filename": "b.txt", "url": "https://1fichier.com/?bbbbb", "size": "7"},
    ],
}


class TestEnvelope:
    """Tests for the minimal response view."""

    def test_rejected(self) -> None:
        envelope = Envelope.from_dict({"status": "KO", "message": "Bad folder"})
        assert envelope.is_rejected
        assert envelope.message == "Bad folder"

    def test_not_rejected(self) -> None:
        assert not Envelope.from_dict({"status": "OK"}).is_rejected
        assert not Envelope.from_dict({"folder_id": 1}).is_rejected

    def test_non_object_payload(self) -> None:
        assert not Envelope.from_dict([1, 2]).is_rejected


class TestFolderInfo:
    """Tests for folder listing decoding."""

    def test_from_dict(self) -> None:
        info = FolderInfo.from_dict(FOLDER_LISTING)

        assert info.id == 42
        assert info.name == "docs"
        assert info.files == 2
        assert info.create_date == datetime(2021, 5, 4, 9, 0, tzinfo=timezone.utc)
        assert [sub.name for sub in info.sub_folders] == ["drafts"]
        assert info.sub_folders[0].password_protected is True
        assert [item.filename for item in info.items] == ["a.txt", "b.txt"]
        assert info.items[0].cdn is True
        assert info.items[0].content_type == "text/plain"
        assert info.items[1].size == 7

    def test_missing_collections_default_to_empty(self) -> None:
        info = FolderInfo.from_dict({"folder_id": 0, "files": 0})

        assert info.sub_folders == []
        assert info.items == []

    def test_find_sub_folder_is_case_sensitive(self) -> None:
        info = FolderInfo.from_dict(FOLDER_LISTING)

        assert info.find_sub_folder("drafts").id == 43
        assert info.find_sub_folder("Drafts") is None


class TestFileDetails:
    """Tests for file/info.cgi decoding."""

    def test_from_dict_with_acl(self) -> None:
        details = FileDetails.from_dict({
            "filename": "a.txt",
            "url": "https://1fichier.com/?aaaaa",
            "size": 12,
            "folder_id": 42,
            "path": "docs",
            "inline": "1",
            "no_ssl": 0,
            "acl": {"ip": ["10.0.0.0/8"], "premium": 1},
        })

        assert details.folder_id == 42
        assert details.inline is True
        assert details.no_ssl is False
        assert details.acl.ip == ["10.0.0.0/8"]
        assert details.acl.premium is True
        assert details.acl.country is None


class TestRequests:
    """Tests for request encoding."""

    def test_file_attributes_only_sends_set_fields(self) -> None:
        attributes = FileAttributes(urls=["u1"], description="hello", cdn=False)

        assert attributes.to_dict() == {"urls": ["u1"], "description": "hello", "cdn": 0}

    def test_file_attributes_full(self) -> None:
        attributes = FileAttributes(
            urls=("u1",),
            filename="new.txt",
            password="",
            no_ssl=True,
            inline=True,
            acl=AccessControl(country=["FR"], premium=False),
        )

        assert attributes.to_dict() == {
            "urls": ["u1"],
            "filename": "new.txt",
            "pass": "",
            "no_ssl": 1,
            "inline": 1,
            "acl": {"country": ["FR"], "premium": 0},
        }

    def test_empty_acl_is_omitted(self) -> None:
        attributes = FileAttributes(urls=["u1"], acl=AccessControl())

        assert "acl" not in attributes.to_dict()


class TestSmallResults:
    def test_upload_node_url(self) -> None:
        node = UploadNode.from_dict({"url": "up-3.1fichier.com", "id": 98765})
        assert node.upload_url == "https://up-3.1fichier.com/upload.cgi?id=98765"

    def test_move_result(self) -> None:
        result = MoveFilesResult.from_dict({"status": "OK", "moved": 2, "urls": ["a", "b"]})
        assert result.moved == 2
        assert result.urls == ["a", "b"]

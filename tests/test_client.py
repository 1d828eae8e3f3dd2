"""Tests for AsyncFichierClient and the single-call endpoints."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from onefichier_sdk import AbuseGuardError, AsyncFichierClient, FileAttributes
from onefichier_sdk.ratelimit import IntervalGuard, RateLimiter


@pytest.fixture
def client(limiter: RateLimiter, guard: IntervalGuard) -> AsyncFichierClient:
    client = AsyncFichierClient(api_key="test_key", rate_limiter=limiter, list_all_guard=guard)
    client.executor._send = AsyncMock(return_value='{"status": "OK"}')
    return client


def sent(client: AsyncFichierClient, index: int = -1) -> tuple[str, dict]:
    """Return the endpoint URL and decoded JSON body of a recorded request."""
    call = client.executor._send.await_args_list[index]
    return call.args[1], json.loads(call.kwargs["data"])


class TestFolders:
    def test_list_folder_payload(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = json.dumps({"folder_id": 5, "name": "x", "files": 0})

        info = asyncio.run(client.list_folder(5, list_files=True))

        url, body = sent(client)
        assert url.endswith("/folder/ls.cgi")
        assert body == {"folder_id": 5, "files": 1}
        assert info.id == 5

    def test_make_folder_returns_id(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "folder_id": 77, "name": "new"}'

        assert asyncio.run(client.make_folder("new", parent_id=3)) == 77
        assert sent(client)[1] == {"name": "new", "folder_id": 3}

    def test_remove_folder(self, client: AsyncFichierClient) -> None:
        asyncio.run(client.remove_folder(9))

        url, body = sent(client)
        assert url.endswith("/folder/rm.cgi")
        assert body == {"folder_id": 9}


class TestFiles:
    def test_list_all_files_twice_is_refused_locally(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "count": 0, "items": []}'

        asyncio.run(client.list_files(-1))
        with pytest.raises(AbuseGuardError):
            asyncio.run(client.list_files(-1))

        assert client.executor._send.await_count == 1

    def test_list_folder_files_is_not_guarded(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "count": 0, "items": []}'

        asyncio.run(client.list_files(4))
        asyncio.run(client.list_files(4))

        assert client.executor._send.await_count == 2

    def test_list_files_dates(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = json.dumps({
            "count": 1,
            "items": [{"filename": "a", "url": "https://1fichier.com/?a", "size": 1}],
        })

        items = asyncio.run(client.list_files(
            4,
            sent_after=datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc),
        ))

        assert [item.filename for item in items] == ["a"]
        assert sent(client)[1] == {"folder_id": 4, "sent_after": "2024-01-01 01:00:00"}

    def test_remove_files(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "removed": 2}'

        assert asyncio.run(client.remove_files(["u1", "u2"])) == 2
        assert sent(client)[1] == {"files": [{"url": "u1"}, {"url": "u2"}]}

    def test_empty_inputs_make_no_call(self, client: AsyncFichierClient) -> None:
        assert asyncio.run(client.remove_files([])) == 0
        assert asyncio.run(client.rename_files({})) == 0

        client.executor._send.assert_not_awaited()

    def test_rename_files(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "renamed": 1}'

        assert asyncio.run(client.rename_files({"u1": "new.txt"})) == 1
        assert sent(client)[1] == {"urls": [{"url": "u1", "filename": "new.txt"}], "pretty": 0}

    def test_move_files(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "moved": 1, "urls": ["n1"]}'

        result = asyncio.run(client.move_files(["u1"], 12))

        assert result.urls == ["n1"]
        assert sent(client)[1] == {"urls": ["u1"], "destination_folder_id": 12}

    def test_change_files_attributes(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "updated": 1}'

        updated = asyncio.run(client.change_files_attributes(FileAttributes(urls=["u1"], inline=True)))

        assert updated == 1
        assert sent(client)[1] == {"urls": ["u1"], "inline": 1}

    def test_get_file_details_by_name(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = json.dumps({"filename": "a", "url": "u", "folder_id": 3})

        details = asyncio.run(client.get_file_details(folder_id=3, filename="a", password="pw"))

        assert details.folder_id == 3
        assert sent(client)[1] == {"folder_id": 3, "filename": "a", "pass": "pw"}


class TestDownloads:
    def test_download_link_payload(self, client: AsyncFichierClient) -> None:
        client.executor._send.return_value = '{"status": "OK", "url": "https://a-7.1fichier.com/c1"}'

        link = asyncio.run(client.get_download_link("https://1fichier.com/?abc", cdn=True, password="pw"))

        url, body = sent(client)
        assert link == "https://a-7.1fichier.com/c1"
        assert url.endswith("/download/get_token.cgi")
        assert body == {
            "url": "https://1fichier.com/?abc",
            "inline": 1,
            "cdn": 1,
            "restrict_ip": 0,
            "no_ssl": 0,
            "pass": "pw",
        }


class TestLifecycle:
    def test_context_manager_closes_executor(self, limiter: RateLimiter) -> None:
        async def scenario() -> AsyncFichierClient:
            async with AsyncFichierClient(api_key="k", rate_limiter=limiter) as client:
                client.executor.close = AsyncMock()
                return client

        client = asyncio.run(scenario())

        client.executor.close.assert_awaited_once()

    def test_credentials_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ONEFICHIER_API_KEY", "env_key")

        assert AsyncFichierClient().api_key == "env_key"

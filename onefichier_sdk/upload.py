"""
Batched multipart uploads.

An upload is split into rounds of at most 100 files. Each round gets its own
relay from the API, posts one multipart body to it and reads the results back
from the HTML confirmation page. Rounds run one after another.
"""

import logging
from typing import Any, List, Mapping, Sequence, Tuple

from lxml.etree import ParserError
from lxml.html import HtmlElement, fromstring

from .exceptions import FichierError, UploadFailedError, UploadNodeError
from .executor import RequestExecutor
from .models import UploadNode, UploadResult
from .multipart import encode_upload_form
from .utils import chunked

logger = logging.getLogger(__name__)

MAX_FILES_PER_ROUND = 100
UPLOAD_SERVER_PATH = "upload/get_upload_server.cgi"

Entry = Tuple[str, Any]


def _consume(source: Any) -> bytes:
    """Read one upload source to the end and release it."""
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    try:
        data = source.read()
    finally:
        source.close()

    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _release(entries: Sequence[Entry]):
    for _, source in entries:
        close = getattr(source, "close", None)
        if close is not None:
            close()


def _read_batch(batch: Sequence[Entry]) -> List[Tuple[str, bytes]]:
    contents = []
    for index, (name, source) in enumerate(batch):
        try:
            contents.append((name, _consume(source)))
        except BaseException:
            _release(batch[index + 1:])
            raise
    return contents


def _cell_value(row: HtmlElement, column: int, prefer_link: bool = False) -> str:
    cells = row.xpath(f"./td[{column}]")
    if not cells:
        return ""
    if prefer_link:
        for anchor in cells[0].xpath(".//a"):
            href = anchor.get("href")
            if href:
                return href.strip()
    return cells[0].text_content().strip()


def parse_upload_results(html: str) -> List[UploadResult]:
    """
    Read the results table of an upload confirmation page.

    The first ``table.premium`` is used; its first row is a header, every
    other row holds filename, size, download link and removal link.

    Raises:
        UploadFailedError: The page holds no results table
    """
    if not html or not html.strip():
        raise UploadFailedError("Upload relay returned an empty page", html=html or "")

    try:
        document = fromstring(html)
    except (ParserError, ValueError) as e:
        raise UploadFailedError(f"Unreadable upload confirmation: {e}", html=html) from e

    tables = document.xpath("//table[@class='premium']")
    if not tables:
        raise UploadFailedError("No result table in upload confirmation", html=html)

    rows = tables[0].xpath("./tr | ./thead/tr | ./tbody/tr")
    return [
        UploadResult(
            file_name=_cell_value(row, 1),
            file_size=_cell_value(row, 2),
            download_link=_cell_value(row, 3, prefer_link=True),
            remove_link=_cell_value(row, 4, prefer_link=True),
        )
        for row in rows[1:]
    ]


class UploadPipeline:
    """
    Uploads a mapping of file name to content in sequential rounds.

    Values may be binary file objects, ``bytes`` or ``str``. File objects are
    read to the end and closed exactly once, including those of rounds that
    never run because an earlier round failed.
    """

    def __init__(self, executor: RequestExecutor, max_files_per_round: int = MAX_FILES_PER_ROUND):
        self.executor = executor
        self.max_files_per_round = max_files_per_round

    async def get_upload_node(self) -> UploadNode:
        """Ask the API for a fresh relay. A relay serves a single round."""
        try:
            return await self.executor.call(
                UPLOAD_SERVER_PATH,
                requires_auth=False,
                model=UploadNode,
                method="GET",
            )
        except (FichierError, KeyError, TypeError, ValueError) as e:
            raise UploadNodeError(f"Unable to obtain an upload node: {e}") from e

    async def upload(
        self,
        files: Mapping[str, Any],
        folder_id: int = 0,
        domain: int = 0,
    ) -> List[UploadResult]:
        """
        Upload every file, at most ``max_files_per_round`` per round.

        Args:
            files: File name to content; the name is sent as-is
            folder_id: Destination folder id, 0 for the root folder
            domain: Target domain id, 0 for the default domain

        Returns:
            One UploadResult per file, in no guaranteed order

        Raises:
            UploadNodeError: A relay could not be obtained
            UploadFailedError: A relay answered without a results table
        """
        entries = list(files.items())
        if not entries:
            return []

        rounds = list(chunked(entries, self.max_files_per_round))
        results: List[UploadResult] = []

        for index, batch in enumerate(rounds):
            try:
                results.extend(await self._upload_round(batch, folder_id, domain, index + 1, len(rounds)))
            except BaseException:
                for pending in rounds[index + 1:]:
                    _release(pending)
                if results:
                    logger.warning("Upload aborted after %d file(s) were stored", len(results))
                raise

        return results

    async def _upload_round(
        self,
        batch: Sequence[Entry],
        folder_id: int,
        domain: int,
        number: int,
        total: int,
    ) -> List[UploadResult]:
        contents = _read_batch(batch)
        node = await self.get_upload_node()
        body, content_type = encode_upload_form(contents, folder_id, domain)

        logger.info("Uploading round %d/%d (%d file(s)) to %s", number, total, len(contents), node.url)
        html = await self.executor.send_raw(
            "POST",
            node.upload_url,
            data=body,
            headers={"Content-Type": content_type, "Connection": "close"},
            force_close=True,
            timeout=self.executor.upload_timeout,
        )

        results = parse_upload_results(html)
        if len(results) != len(contents):
            logger.warning(
                "Round %d/%d sent %d file(s) but the relay reported %d",
                number, total, len(contents), len(results),
            )
        return results

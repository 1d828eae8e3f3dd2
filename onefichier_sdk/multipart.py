"""
Multipart body encoding for upload relays.

The relay's form parser is strict: the boundary must appear unquoted in the
request Content-Type, every part name and filename must be quoted, and the
scalar parts must not carry a Content-Type header. Files are silently
dropped or corrupted otherwise.
"""

import uuid
from typing import Iterable, Optional, Tuple

from .utils import guess_mime_type

CRLF = b"\r\n"


def new_boundary() -> str:
    return "------" + uuid.uuid4().hex


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A") + '"'


def content_type_header(boundary: str) -> str:
    """Content-Type for the request, boundary left unquoted."""
    return f"multipart/form-data; boundary={boundary}"


def encode_upload_form(
    files: Iterable[Tuple[str, bytes]],
    folder_id: int,
    domain: int,
    boundary: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Build the upload form for one round.

    Args:
        files: (filename, content) pairs, one ``file[]`` part each
        folder_id: Destination folder id, sent as the ``did`` field
        domain: Target domain id, sent as the ``domain`` field
        boundary: Boundary marker; a random one by default

    Returns:
        The encoded body and the matching Content-Type header value
    """
    boundary = boundary or new_boundary()
    delimiter = b"--" + boundary.encode("ascii")
    parts = []

    for filename, content in files:
        parts.append(delimiter + CRLF)
        parts.append(
            f"Content-Disposition: form-data; name={_quote('file[]')}; filename={_quote(filename)}".encode("utf-8")
            + CRLF
        )
        parts.append(f"Content-Type: {guess_mime_type(filename)}".encode("ascii") + CRLF)
        parts.append(CRLF)
        parts.append(content)
        parts.append(CRLF)

    for name, value in (("did", folder_id), ("domain", domain)):
        parts.append(delimiter + CRLF)
        parts.append(f"Content-Disposition: form-data; name={_quote(name)}".encode("ascii") + CRLF)
        parts.append(CRLF)
        parts.append(str(value).encode("ascii"))
        parts.append(CRLF)

    parts.append(delimiter + b"--" + CRLF)
    return b"".join(parts), content_type_header(boundary)

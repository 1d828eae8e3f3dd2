"""
Custom exceptions for the 1fichier SDK.

Every failure the SDK raises on its own derives from FichierError. Transport
failures (aiohttp connection errors, timeouts) are not wrapped and reach the
caller as raised by aiohttp.
"""

from typing import Optional


class FichierError(Exception):
    """Base exception for all 1fichier SDK errors."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class CredentialError(FichierError):
    """Raised before any I/O when a call needs an API key and none is configured."""

    def __init__(self, message: str = "An API key is required for this operation", **kwargs):
        super().__init__(message, error_code="CREDENTIAL_ERROR", **kwargs)


class ServerRejectedError(FichierError):
    """Raised when the response envelope reports status KO."""

    def __init__(self, message: str = "Request rejected by server", endpoint: str = None, **kwargs):
        super().__init__(message, error_code="SERVER_REJECTED", **kwargs)
        self.endpoint = endpoint


class UploadNodeError(FichierError):
    """Raised when no upload relay could be obtained for an upload round."""

    def __init__(self, message: str = "Unable to obtain an upload node", **kwargs):
        super().__init__(message, error_code="UPLOAD_NODE_ERROR", **kwargs)


class UploadFailedError(FichierError):
    """Raised when the upload confirmation page holds no result table."""

    def __init__(self, message: str = "File upload failed", html: str = "", **kwargs):
        super().__init__(message, error_code="UPLOAD_FAILED", **kwargs)
        self.html = html


class FolderNotFoundError(FichierError):
    """Raised when a path segment matches no remote folder."""

    def __init__(self, path: str, message: Optional[str] = None, **kwargs):
        super().__init__(message or f"Folder not found: {path}", error_code="FOLDER_NOT_FOUND", **kwargs)
        self.path = path


class FileNotFoundError(FichierError):
    """Raised when a remote file path does not resolve to a file."""

    def __init__(self, path: str, message: Optional[str] = None, **kwargs):
        super().__init__(message or f"File not found: {path}", error_code="FILE_NOT_FOUND", **kwargs)
        self.path = path


class AbuseGuardError(FichierError):
    """Raised locally when listing all files is requested too often."""

    def __init__(self, message: str = "Listing all files is limited to once every 10 minutes", **kwargs):
        super().__init__(message, error_code="ABUSE_GUARD", **kwargs)


class ConvergenceTimeoutError(FichierError):
    """Raised when a folder keeps reporting files after the allowed number of polls."""

    def __init__(self, folder_id: int, polls: int, remaining: int, **kwargs):
        message = (
            f"Folder {folder_id} still reports {remaining} file(s) "
            f"after {polls} poll(s)"
        )
        super().__init__(message, error_code="CONVERGENCE_TIMEOUT", **kwargs)
        self.folder_id = folder_id
        self.polls = polls
        self.remaining = remaining

"""
Request execution for the 1fichier SDK.

RequestExecutor owns the aiohttp session and turns one API call into one
throttled HTTP request. Responses are decoded in two steps: first into the
minimal Envelope to detect a rejection, then into the caller's model.
"""

import json
import logging
import os
from typing import Any, Dict, Optional, Type, TypeVar

import aiohttp

from .exceptions import CredentialError, ServerRejectedError
from .models import Envelope
from .ratelimit import RateLimiter, get_default_limiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

API_ENDPOINT = "https://api.1fichier.com/v1"
USER_AGENT = "onefichier-python-sdk/1.0.0"

# Relay rounds carry up to 100 files: no total limit, only connect and read stalls.
UPLOAD_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=300)


class RequestExecutor:
    """
    Sends API calls, one throttle slot per call.

    A call that requires authentication fails with CredentialError before
    touching the network when no API key is configured. Otherwise the key is
    sent as a bearer token whenever it is present.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        proxy: Optional[str] = None,
        endpoint: str = API_ENDPOINT,
        timeout: int = 30,
        rate_limiter: Optional[RateLimiter] = None,
        upload_timeout: Optional[aiohttp.ClientTimeout] = None,
    ):
        """
        Initialize the executor.

        Args:
            api_key: API key (can also use ONEFICHIER_API_KEY env var)
            proxy: Proxy URL for every request (can also use ONEFICHIER_PROXY env var)
            endpoint: API base URL
            timeout: Request timeout in seconds
            rate_limiter: Throttle to use; the process-wide limiter by default
            upload_timeout: Timeout for relay uploads; no total limit by default
        """
        self.api_key = api_key or os.getenv("ONEFICHIER_API_KEY")
        self.proxy = proxy or os.getenv("ONEFICHIER_PROXY")
        self.endpoint = endpoint.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.rate_limiter = rate_limiter or get_default_limiter()
        self.upload_timeout = upload_timeout or UPLOAD_TIMEOUT
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        return self._session

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if extra:
            headers.update(extra)
        return headers

    def _check_credentials(self, requires_auth: bool):
        if requires_auth and not self.api_key:
            raise CredentialError()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        force_close: bool = False,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> str:
        """Issue one HTTP request and return the response body as text."""
        timeout = timeout or self.timeout
        if force_close:
            # Relays refuse keep-alive, so this request gets its own connector.
            connector = aiohttp.TCPConnector(force_close=True)
            async with aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT},
                timeout=timeout,
                connector=connector,
            ) as session:
                async with session.request(method, url, data=data, headers=headers, proxy=self.proxy) as response:
                    return await response.text()

        session = await self._get_session()
        async with session.request(
            method, url, data=data, headers=headers, proxy=self.proxy, timeout=timeout
        ) as response:
            return await response.text()

    async def call(
        self,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        model: Optional[Type[T]] = None,
        method: str = "POST",
    ) -> Any:
        """
        Send one API call.

        Args:
            path: Endpoint path relative to the API base, e.g. ``folder/ls.cgi``
            payload: JSON-serializable request body
            requires_auth: Fail with CredentialError when no API key is set
            model: Class with a ``from_dict`` classmethod to decode into
            method: HTTP method

        Returns:
            The decoded model, or the parsed JSON when no model is given

        Raises:
            CredentialError: No API key for an authenticated call
            ServerRejectedError: The response envelope reports status KO
        """
        await self.rate_limiter.acquire()
        self._check_credentials(requires_auth)

        url = f"{self.endpoint}/{path.lstrip('/')}"
        body = json.dumps(payload) if payload is not None else None
        logger.debug("%s %s", method, url)

        text = await self._send(
            method,
            url,
            data=body,
            headers=self._headers({"Content-Type": "application/json"}),
        )
        return self.decode(text, model, path)

    @staticmethod
    def decode(text: str, model: Optional[Type[T]] = None, path: str = None) -> Any:
        """Decode a response body, raising on a rejected envelope."""
        data = json.loads(text) if text else {}

        envelope = Envelope.from_dict(data)
        if envelope.is_rejected:
            logger.debug("Call to %s rejected: %s", path, envelope.message)
            raise ServerRejectedError(envelope.message or "Request rejected by server", endpoint=path)

        if model is None:
            return data
        return model.from_dict(data)

    async def send_raw(
        self,
        method: str,
        url: str,
        *,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        requires_auth: bool = False,
        force_close: bool = False,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> str:
        """
        Send a non-JSON request to an absolute URL, taking one throttle slot.

        ``timeout`` replaces the API call timeout for this request only.

        Returns:
            The raw response body
        """
        await self.rate_limiter.acquire()
        self._check_credentials(requires_auth)
        logger.debug("%s %s", method, url)
        return await self._send(
            method,
            url,
            data=data,
            headers=self._headers(headers),
            force_close=force_close,
            timeout=timeout,
        )

    async def close(self):
        """Close the underlying session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

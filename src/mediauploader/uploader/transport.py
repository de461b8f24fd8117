"""HTTP transport used by the upload engine."""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from mediauploader.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestBody:
    """Multipart form body: string fields plus an optional binary file part."""

    fields: Mapping[str, str] = field(default_factory=dict)
    file_name: Optional[str] = None
    file_data: Optional[bytes] = None
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body of a completed HTTP exchange."""

    status_code: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TransportAdapter(Protocol):
    """Performs one HTTP request; owns pooling, TLS and connection retries."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: RequestBody,
        timeout: float | None,
    ) -> TransportResponse:
        ...


class HttpxTransport:
    """TransportAdapter over a shared ``httpx.AsyncClient``.

    Only connection establishment failures are retried: once any bytes of
    a chunk may have reached the service, a failure is reported as is.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        max_attempts: int = 1,
        connect_timeout: float = 10.0,
        user_agent: str | None = None,
    ):
        """Initialize the transport.

        Args:
            client: Client to use. If None, one is created and owned here.
            max_attempts: Connection attempts per request
            connect_timeout: Upper bound for establishing a connection
            user_agent: User-Agent header for owned clients
        """
        self._owns_client = client is None
        headers = {"User-Agent": user_agent} if user_agent else None
        self._client = client or httpx.AsyncClient(headers=headers)
        self._max_attempts = max(1, max_attempts)
        self._connect_timeout = connect_timeout

    def _timeout(self, timeout: float | None) -> httpx.Timeout:
        if timeout is None:
            return httpx.Timeout(None, connect=self._connect_timeout)
        return httpx.Timeout(timeout, connect=min(self._connect_timeout, timeout))

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: RequestBody,
        timeout: float | None,
    ) -> TransportResponse:
        """Send one multipart request.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Extra request headers
            body: Form fields and optional file part
            timeout: Seconds allowed for the whole exchange, None for no limit

        Returns:
            TransportResponse with the status code and body, for any status

        Raises:
            TransportError: If the request could not be completed
        """
        files = None
        if body.file_data is not None:
            files = {"file": (body.file_name or "file", body.file_data, body.content_type)}

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(multiplier=0.5, max=4),
                retry=retry_if_exception_type(httpx.ConnectError),
                reraise=True,
            ):
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        logger.warning(
                            "Retrying connection to upload service",
                            extra={"url": url, "attempt": attempt_number, "max_attempts": self._max_attempts},
                        )
                    response = await self._client.request(
                        method,
                        url,
                        headers=dict(headers),
                        data=dict(body.fields),
                        files=files,
                        timeout=self._timeout(timeout),
                    )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        logger.debug(
            "Upload service responded",
            extra={"url": url, "status_code": response.status_code, "response_bytes": len(response.content)},
        )
        return TransportResponse(status_code=response.status_code, body=response.content)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

"""Chunked upload engine.

Sends a source to the asset service either in one request or, when it is
larger than the configured chunk size, as a strictly sequential series of
``Content-Range`` requests tied together by the continuation ID the
service returns. One deadline covers the whole upload.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from mediauploader.core.config import UploaderConfig
from mediauploader.core.logging import upload_context
from mediauploader.models.params import UploadParams
from mediauploader.models.result import (
    UploadResult,
    decode_chunk_ack,
    decode_upload_result,
    extract_service_error,
)
from mediauploader.exceptions import (
    DeadlineExceededError,
    TransportError,
    UnknownLengthError,
    UploadCancelledError,
    UploadError,
)
from mediauploader.uploader.planner import ChunkRange, plan_chunks
from mediauploader.uploader.session import UploadSession
from mediauploader.uploader.sources import ByteSource
from mediauploader.uploader.transport import RequestBody, TransportAdapter, TransportResponse

logger = logging.getLogger(__name__)

CONTINUATION_HEADER = "X-Unique-Upload-Id"

# Returns authentication fields (signature, timestamp, api_key) for a request
Signer = Callable[[Mapping[str, str]], Mapping[str, str]]


def unsigned(fields: Mapping[str, str]) -> Mapping[str, str]:
    """Signer for unsigned uploads, e.g. with an ``upload_preset``."""
    return {}


class ChunkedUploadEngine:
    """Uploads one source per call using an immutable configuration."""

    def __init__(
        self,
        transport: TransportAdapter,
        config: UploaderConfig,
        signer: Optional[Signer] = None,
    ):
        self._transport = transport
        self._config = config
        self._signer = signer or unsigned

    @property
    def config(self) -> UploaderConfig:
        return self._config

    def upload_url(self, resource_type: str) -> str:
        """Build the upload endpoint for a resource type."""
        return f"{self._config.api_base_url}/v1_1/{self._config.cloud_name}/{resource_type}/upload"

    async def upload(
        self,
        source: ByteSource,
        params: UploadParams,
        deadline: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadResult:
        """Upload a byte source.

        Args:
            source: Source of known length
            params: Per-asset upload options
            deadline: Timezone-aware instant after which the upload aborts.
                If None, the configured upload timeout applies.
            cancel_event: Setting this event aborts the upload

        Returns:
            Decoded result of the completed upload

        Raises:
            UnknownLengthError: If the source length cannot be determined
            DeadlineExceededError: If the deadline elapses
            UploadCancelledError: If cancel_event is set
            TransportError: If a request fails or the service rejects it
            MalformedResponseError: If the final response cannot be decoded
        """
        expires_at = self._resolve_deadline(deadline)
        source_size = self._source_length(source)
        session = UploadSession(source_size=source_size, chunk_size=self._config.chunk_size)
        chunks = plan_chunks(source_size, session.chunk_size)
        file_name = getattr(source, "name", None) or "file"

        token = upload_context.set(params.public_id)
        try:
            logger.info(
                "Starting upload",
                extra={
                    "source_size": source_size,
                    "chunk_size": session.chunk_size,
                    "chunk_count": len(chunks),
                    "resource_type": params.resource_type,
                },
            )
            return await self._run(session, chunks, source, file_name, params, expires_at, cancel_event)
        finally:
            upload_context.reset(token)

    async def upload_reference(
        self,
        file_ref: str,
        params: UploadParams,
        deadline: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadResult:
        """Upload an asset the service fetches itself (remote URL or data URI)."""
        expires_at = self._resolve_deadline(deadline)
        session = UploadSession(source_size=0, chunk_size=self._config.chunk_size)

        token = upload_context.set(params.public_id)
        try:
            logger.info(
                "Starting upload by reference",
                extra={"reference_scheme": file_ref.split(":", 1)[0], "resource_type": params.resource_type},
            )
            session.start()
            try:
                body = RequestBody(fields={**self._form_fields(params), "file": file_ref})
                response = await self._send(self.upload_url(params.resource_type), {}, body, expires_at, cancel_event)
                result = decode_upload_result(response.body)
            except (UploadError, asyncio.CancelledError) as e:
                self._fail(session, e)
                raise
            session.complete()
            logger.info("Upload completed", extra={"asset_id": result.asset_id, "size_bytes": result.size_bytes})
            return result
        finally:
            upload_context.reset(token)

    async def _run(
        self,
        session: UploadSession,
        chunks: list[ChunkRange],
        source: ByteSource,
        file_name: str,
        params: UploadParams,
        expires_at: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> UploadResult:
        url = self.upload_url(params.resource_type)
        session.start()
        try:
            if len(chunks) == 1:
                chunk = chunks[0]
                self._check_ready(expires_at, cancel_event)
                body = self._chunk_body(source, chunk, file_name, params)
                response = await self._send(url, {}, body, expires_at, cancel_event)
                result = decode_upload_result(response.body)
                session.acknowledge(chunk)
            else:
                result = await self._send_chunks(
                    session, chunks, source, file_name, params, url, expires_at, cancel_event
                )
        except (UploadError, asyncio.CancelledError) as e:
            self._fail(session, e)
            raise

        session.complete()
        logger.info(
            "Upload completed",
            extra={
                "asset_id": result.asset_id,
                "bytes_sent": session.bytes_sent,
                "chunk_count": len(chunks),
            },
        )
        return result

    async def _send_chunks(
        self,
        session: UploadSession,
        chunks: list[ChunkRange],
        source: ByteSource,
        file_name: str,
        params: UploadParams,
        url: str,
        expires_at: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> UploadResult:
        last_index = len(chunks) - 1
        for index, chunk in enumerate(chunks):
            headers = {"Content-Range": chunk.content_range(session.source_size)}
            if session.continuation_id:
                headers[CONTINUATION_HEADER] = session.continuation_id

            self._check_ready(expires_at, cancel_event)
            body = self._chunk_body(source, chunk, file_name, params)
            response = await self._send(url, headers, body, expires_at, cancel_event)

            if index == last_index:
                result = decode_upload_result(response.body)
                session.acknowledge(chunk)
                return result

            ack = decode_chunk_ack(response.body)
            session.acknowledge(chunk, ack.upload_id)
            logger.debug(
                "Chunk acknowledged",
                extra={
                    "chunk_index": index,
                    "content_range": headers["Content-Range"],
                    "bytes_sent": session.bytes_sent,
                    "service_bytes": ack.received_bytes,
                },
            )

        # plan_chunks never returns an empty list
        raise AssertionError("no chunks to send")

    def _chunk_body(
        self, source: ByteSource, chunk: ChunkRange, file_name: str, params: UploadParams
    ) -> RequestBody:
        try:
            data = source.read_range(chunk.offset, chunk.length)
        except OSError as e:
            raise TransportError(f"Failed to read source at offset {chunk.offset}: {e}") from e
        return RequestBody(fields=self._form_fields(params), file_name=file_name, file_data=data)

    def _form_fields(self, params: UploadParams) -> dict[str, str]:
        fields = params.to_form_fields()
        auth = dict(self._signer(fields))
        if self._config.api_key and "api_key" not in auth and "upload_preset" not in fields:
            auth["api_key"] = self._config.api_key
        return {**fields, **auth}

    async def _send(
        self,
        url: str,
        headers: Mapping[str, str],
        body: RequestBody,
        expires_at: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> TransportResponse:
        """Send one request, racing it against the deadline and cancellation."""
        timeout = self._check_ready(expires_at, cancel_event)

        send_task = asyncio.ensure_future(self._transport.send("POST", url, headers, body, timeout))
        waiters: set[asyncio.Future] = {send_task}
        cancel_task = None
        if cancel_event is not None:
            cancel_task = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_task)

        try:
            done, pending = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            for task in waiters:
                task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if send_task in done:
            try:
                response = send_task.result()
            except TransportError as e:
                if expires_at is not None and time.monotonic() >= expires_at:
                    raise DeadlineExceededError("Upload deadline exceeded while waiting for the service") from e
                raise
            self._check_status(response)
            return response
        if cancel_task is not None and cancel_task in done:
            raise UploadCancelledError("Upload cancelled while a request was in flight")
        raise DeadlineExceededError("Upload deadline exceeded while waiting for the service")

    @staticmethod
    def _check_status(response: TransportResponse) -> None:
        if response.ok:
            return
        service_message = extract_service_error(response.body)
        message = f"Upload service returned HTTP {response.status_code}"
        if service_message:
            message = f"{message}: {service_message}"
        raise TransportError(message, status_code=response.status_code, service_message=service_message)

    def _resolve_deadline(self, deadline: Optional[datetime]) -> Optional[float]:
        """Convert the deadline to a monotonic-clock instant, once per session."""
        now = time.monotonic()
        if deadline is None:
            if self._config.upload_timeout_seconds is None:
                return None
            return now + self._config.upload_timeout_seconds
        if deadline.tzinfo is None:
            raise ValueError("deadline must be timezone-aware")
        return now + (deadline - datetime.now(timezone.utc)).total_seconds()

    def _check_ready(
        self, expires_at: Optional[float], cancel_event: Optional[asyncio.Event]
    ) -> Optional[float]:
        """Refuse to start a request once cancelled or past the deadline; return the time left."""
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError("Upload cancelled before sending the next request")
        return self._remaining(expires_at)

    @staticmethod
    def _remaining(expires_at: Optional[float]) -> Optional[float]:
        if expires_at is None:
            return None
        remaining = expires_at - time.monotonic()
        if remaining <= 0:
            raise DeadlineExceededError("Upload deadline exceeded before sending the next request")
        return remaining

    @staticmethod
    def _source_length(source: ByteSource) -> int:
        length = source.length()
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            raise UnknownLengthError(f"Source reported an invalid length: {length!r}")
        return length

    @staticmethod
    def _fail(session: UploadSession, error: BaseException) -> None:
        session.abort()
        if isinstance(error, asyncio.CancelledError):
            logger.warning(
                "Upload task cancelled",
                extra={"bytes_sent": session.bytes_sent, "continuation_id": session.continuation_id},
            )
            return
        logger.error(
            "Upload aborted",
            extra={
                "error": str(error),
                "error_type": type(error).__name__,
                "status_code": getattr(error, "status_code", None),
                "bytes_sent": session.bytes_sent,
                "source_size": session.source_size,
                "continuation_id": session.continuation_id,
            },
        )

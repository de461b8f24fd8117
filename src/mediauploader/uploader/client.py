"""High-level upload client."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from mediauploader.core.config import Settings, settings as default_settings
from mediauploader.models.params import UploadParams
from mediauploader.models.result import UploadResult
from mediauploader.uploader.engine import ChunkedUploadEngine, Signer
from mediauploader.uploader.sources import as_byte_source
from mediauploader.uploader.transport import HttpxTransport, TransportAdapter

logger = logging.getLogger(__name__)

# Sources the service fetches on its own
REMOTE_PREFIXES = ("http://", "https://", "ftp://", "s3://", "gs://", "data:")


def is_remote_reference(value: str) -> bool:
    """Check whether a string names a remote asset or a base64 data URI."""
    lowered = value[:8].lower()
    if lowered.startswith("data:"):
        return ";base64," in value[:256]
    return lowered.startswith(REMOTE_PREFIXES)


class Uploader:
    """Upload client sharing one transport across concurrent uploads.

    Configuration is read from ``settings`` at the start of every upload,
    so each upload works from its own snapshot.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[TransportAdapter] = None,
        signer: Optional[Signer] = None,
    ):
        """Initialize the uploader.

        Args:
            config: Settings to snapshot per upload. Defaults to the global settings.
            transport: Transport to use. If None, an HttpxTransport is created and owned.
            signer: Produces authentication fields for each request
        """
        self.config = config or default_settings
        self._owns_transport = transport is None
        if transport is None:
            snapshot = self.config.snapshot()
            transport = HttpxTransport(
                max_attempts=snapshot.transport_max_attempts,
                connect_timeout=snapshot.connect_timeout_seconds,
                user_agent=snapshot.user_agent,
            )
        self._transport = transport
        self._signer = signer

    def _engine(self) -> ChunkedUploadEngine:
        return ChunkedUploadEngine(self._transport, self.config.snapshot(), self._signer)

    def upload_url(self, resource_type: str = "auto") -> str:
        """Return the upload endpoint for a resource type."""
        return self._engine().upload_url(resource_type)

    async def upload(
        self,
        file: Any,
        params: Optional[UploadParams] = None,
        deadline: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UploadResult:
        """Upload an asset.

        Args:
            file: ByteSource, bytes, seekable binary file object, or a remote
                URL / base64 data URI string
            params: Upload options
            deadline: Timezone-aware instant after which the upload aborts
            cancel_event: Setting this event aborts the upload

        Returns:
            UploadResult of the completed upload

        Raises:
            ValueError: If file is a string that is not a remote reference
            UploadError: Any upload failure, see ChunkedUploadEngine.upload
        """
        params = params or UploadParams()
        engine = self._engine()

        if isinstance(file, str):
            if not is_remote_reference(file):
                raise ValueError("String sources must be a remote URL or a base64 data URI")
            return await engine.upload_reference(file, params, deadline, cancel_event)

        return await engine.upload(as_byte_source(file), params, deadline, cancel_event)

    async def aclose(self) -> None:
        """Close the transport if this uploader created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> "Uploader":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

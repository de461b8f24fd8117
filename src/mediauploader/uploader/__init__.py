"""
Upload engine

Sends media assets to the asset service, in one request or as a sequence of
chunks for sources larger than the configured chunk size, and decodes the
service's response into an UploadResult.
"""

from mediauploader.exceptions import (
    DeadlineExceededError,
    MalformedPairError,
    MalformedResponseError,
    SessionStateError,
    TransportError,
    UnknownLengthError,
    UploadCancelledError,
    UploadError,
)
from mediauploader.uploader.planner import ChunkRange, plan_chunks
from mediauploader.uploader.sources import ByteSource, BytesSource, FileObjectSource
from mediauploader.uploader.transport import HttpxTransport, RequestBody, TransportResponse
from mediauploader.uploader.engine import ChunkedUploadEngine, Signer, unsigned
from mediauploader.uploader.client import Uploader

__all__ = [
    "ByteSource",
    "BytesSource",
    "ChunkRange",
    "ChunkedUploadEngine",
    "DeadlineExceededError",
    "FileObjectSource",
    "HttpxTransport",
    "MalformedPairError",
    "MalformedResponseError",
    "RequestBody",
    "SessionStateError",
    "Signer",
    "TransportError",
    "TransportResponse",
    "UnknownLengthError",
    "UploadCancelledError",
    "UploadError",
    "Uploader",
    "plan_chunks",
    "unsigned",
]

"""Pytest configuration and shared fixtures."""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import pytest

from mediauploader.core.config import UploaderConfig
from mediauploader.uploader.transport import RequestBody, TransportResponse


@dataclass
class SentRequest:
    """A request captured by FakeTransport."""

    method: str
    url: str
    headers: dict[str, str]
    body: RequestBody
    timeout: float | None


class FakeTransport:
    """Transport that replays scripted responses and records every request.

    Each scripted item is a TransportResponse, an exception to raise, or an
    async callable returning a TransportResponse.
    """

    def __init__(self, responses: list[Any]):
        self.requests: list[SentRequest] = []
        self._responses = list(responses)
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: RequestBody,
        timeout: float | None,
    ) -> TransportResponse:
        self.requests.append(SentRequest(method, url, dict(headers), body, timeout))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            item = self._responses.pop(0)
            if isinstance(item, BaseException):
                raise item
            if callable(item):
                item = await item()
            return item
        finally:
            self.in_flight -= 1


def json_response(payload: dict[str, Any], status_code: int = 200) -> TransportResponse:
    """Build a TransportResponse with a JSON body."""
    return TransportResponse(status_code=status_code, body=json.dumps(payload).encode())


def chunk_ack(upload_id: str | None, received: int) -> TransportResponse:
    """Build an intermediate chunk acknowledgement."""
    payload: dict[str, Any] = {"bytes": received, "done": False}
    if upload_id is not None:
        payload["upload_id"] = upload_id
    return json_response(payload)


@pytest.fixture
def upload_config() -> UploaderConfig:
    """Configuration with a tiny chunk size so small payloads are chunked."""
    return UploaderConfig(
        api_base_url="https://api.example.com",
        cloud_name="demo",
        api_key="test-key",
        chunk_size=10,
        upload_timeout_seconds=None,
        connect_timeout_seconds=5.0,
        transport_max_attempts=1,
        user_agent="mediauploader-tests/0.1.0",
    )


@pytest.fixture
def result_payload() -> dict[str, Any]:
    """A complete final upload response."""
    return {
        "asset_id": "c3f435bff0410515f8fdadb2a5037881",
        "public_id": "testimage",
        "version": 1645288244,
        "version_id": "ecc1001803c67e03780bb2e43a71314e",
        "signature": "910e43e4e41490d1bac6cc5309dde599c7edb933",
        "width": 600,
        "height": 600,
        "format": "png",
        "resource_type": "image",
        "created_at": "2022-02-19T16:30:44Z",
        "pages": 1,
        "bytes": 31543,
        "type": "upload",
        "etag": "a1e0cf45cf40c6a5e919ac6785d92d5b",
        "url": "http://foo.com/image/upload/v1645288244/testimage.png",
        "secure_url": "https://foo.com/image/upload/v1645288244/testimage.png",
        "colors": [["#E4E4A8", 71], ["#2F2F2F", 8.7], ["#7A6241", 7.8], ["#DEC39C", 7.4]],
        "predominant": {
            "cloudinary": [["yellow", 71], ["black", 8.7], ["brown", 7.8], ["orange", 7.4]],
            "google": [["yellow", 71], ["black", 8.7], ["brown", 7.8], ["orange", 7.4]],
        },
        "context": {"custom": {"alt": "Sample", "caption": "Logo"}},
        "phash": "31845b631e659ee9",
        "original_filename": "file",
    }


@pytest.fixture
def make_transport() -> Callable[[list[Any]], FakeTransport]:
    """Factory for FakeTransport instances."""
    return FakeTransport

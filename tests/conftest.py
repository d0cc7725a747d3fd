from __future__ import annotations

import asyncio
import base64
import io
import json
import sys
from pathlib import Path

import pytest
import requests
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from imagao import RawFile
from imagao.models import EditRequest


def make_image_bytes(fmt: str = "JPEG", size=(8, 6), color=(200, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def image_response(blob: bytes, mime_type: str = "image/png", text: str | None = None) -> dict:
    parts = []
    if text is not None:
        parts.append({"text": text})
    parts.append({"inlineData": {"mimeType": mime_type, "data": base64.b64encode(blob).decode()}})
    return {"candidates": [{"content": {"role": "model", "parts": parts}}]}


def text_response(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, text: str | None = None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)
        self.reason = "OK" if status_code < 400 else "Error"

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeModel:
    """Synchronous stand-in for the remote editor."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests: list[EditRequest] = []

    def edit(self, request: EditRequest):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


class GatedClient:
    """Edit client whose ``submit`` waits until the test releases it."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def submit(self, request):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes("PNG", color=(10, 120, 250))


@pytest.fixture()
def jpeg_file(jpeg_bytes) -> RawFile:
    return RawFile(name="photo.jpg", content_type="image/jpeg", data=jpeg_bytes)


@pytest.fixture()
def text_file() -> RawFile:
    return RawFile(name="notes.txt", content_type="text/plain", data=b"hello there")


from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import requests

from conftest import FakeModel, image_response, text_response
from imagao import EditClient, Failure, FailureKind, ImageProduced, RemoteFault, TextOnly, classify_response
from imagao.edit_client import GENERIC_ERROR_MESSAGE, NO_OUTPUT_MESSAGE
from imagao.models import EditRequest
from imagao.utils import parse_data_url

REQUEST = EditRequest(instruction="test", image_data="aGVsbG8=", media_type="image/jpeg")


def submit(model) -> object:
    return asyncio.run(EditClient(model).submit(REQUEST))


def test_image_part_becomes_image_produced(png_bytes) -> None:
    outcome = submit(FakeModel(image_response(png_bytes, text="Here you go")))

    assert isinstance(outcome, ImageProduced)
    assert outcome.media_type == "image/png"
    media_type, raw = parse_data_url(outcome.data_url)
    assert media_type == "image/png"
    assert raw == png_bytes


def test_model_receives_the_request(png_bytes) -> None:
    model = FakeModel(image_response(png_bytes))
    submit(model)
    assert model.requests == [REQUEST]


def test_text_only_response() -> None:
    outcome = submit(FakeModel(text_response("I cannot do that")))
    assert outcome == TextOnly("I cannot do that")


def test_text_parts_are_joined_and_thoughts_skipped() -> None:
    response = {"candidates": [{"content": {"parts": [
        {"text": "thinking...", "thought": True},
        {"text": " first "},
        {"text": "second"},
    ]}}]}
    assert classify_response(response) == TextOnly("first\nsecond")


def test_empty_response_is_classification_failure() -> None:
    for response in ({}, {"candidates": []}, {"candidates": [{"content": {"parts": []}}]}, None):
        outcome = classify_response(response)
        assert outcome == Failure(NO_OUTPUT_MESSAGE, FailureKind.CLASSIFICATION)


def test_blocked_prompt_reason_is_reported() -> None:
    outcome = classify_response({"promptFeedback": {"blockReason": "SAFETY"}})
    assert isinstance(outcome, Failure)
    assert outcome.kind is FailureKind.CLASSIFICATION
    assert "SAFETY" in outcome.reason


def test_non_image_inline_data_is_ignored() -> None:
    response = {"candidates": [{"content": {"parts": [
        {"inlineData": {"mimeType": "application/pdf", "data": base64.b64encode(b"%PDF").decode()}},
        {"text": "no picture this time"},
    ]}}]}
    assert classify_response(response) == TextOnly("no picture this time")


def test_undecodable_inline_data_falls_through() -> None:
    response = {"candidates": [{"content": {"parts": [
        {"inlineData": {"mimeType": "image/png", "data": "***not base64***"}},
    ]}}]}
    assert isinstance(classify_response(response), Failure)


def test_sdk_style_objects_are_understood(png_bytes) -> None:
    part = SimpleNamespace(text=None, thought=None, inline_data=SimpleNamespace(mime_type="image/webp", data=png_bytes))
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])

    outcome = classify_response(response)

    assert isinstance(outcome, ImageProduced)
    assert outcome.data_url.startswith("data:image/webp;base64,")


def test_remote_fault_becomes_failure() -> None:
    outcome = submit(FakeModel(error=RemoteFault("timeout")))
    assert outcome == Failure("timeout", FailureKind.REMOTE)


def test_transport_error_without_message_uses_generic_text() -> None:
    outcome = submit(FakeModel(error=requests.ConnectionError()))
    assert outcome == Failure(GENERIC_ERROR_MESSAGE, FailureKind.REMOTE)


def test_async_model_is_awaited(png_bytes) -> None:
    class AsyncModel:
        async def edit(self, request):
            return image_response(png_bytes)

    assert isinstance(submit(AsyncModel()), ImageProduced)

"""Calls the remote model and maps whatever comes back onto an :data:`EditOutcome`.

Responses are walked defensively: Gemini's REST API answers with camelCase
keys, the SDK objects use snake_case attributes, and either may omit
``candidates`` entirely when a prompt is blocked. ``submit`` never raises.
"""
import asyncio
import base64
import binascii
import inspect
import logging
from typing import Any, Iterable, List, Optional, Tuple

from .models import EditOutcome, EditRequest, Failure, FailureKind, ImageProduced, TextOnly
from .utils import to_data_url

logger = logging.getLogger(__name__)

NO_OUTPUT_MESSAGE = "model responded without producing image or text"
GENERIC_ERROR_MESSAGE = "An unexpected error occurred."


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, dict):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


def _coerce_bytes(blob: Any) -> Optional[bytes]:
    if isinstance(blob, (bytes, bytearray)):
        return bytes(blob)
    if isinstance(blob, str):
        try:
            return base64.b64decode(blob, validate=True)
        except (ValueError, binascii.Error):
            return None
    return None


def _parts(response: Any) -> Iterable[Any]:
    candidates = _field(response, "candidates") or []
    for candidate in candidates:
        content = _field(candidate, "content")
        for part in _field(content, "parts") or []:
            yield part


def _inline_image(part: Any) -> Optional[Tuple[bytes, str]]:
    inline = _field(part, "inlineData", "inline_data")
    if inline is None:
        return None
    media_type = _field(inline, "mimeType", "mime_type") or "image/png"
    if not str(media_type).startswith("image/"):
        return None
    blob = _coerce_bytes(_field(inline, "data"))
    if not blob:
        return None
    return blob, str(media_type)


def _block_reason(response: Any) -> Optional[str]:
    feedback = _field(response, "promptFeedback", "prompt_feedback")
    reason = _field(feedback, "blockReason", "block_reason") if feedback is not None else None
    return str(getattr(reason, "value", reason)) if reason else None


def classify_response(response: Any) -> EditOutcome:
    texts: List[str] = []
    for part in _parts(response):
        image = _inline_image(part)
        if image is not None:
            blob, media_type = image
            return ImageProduced(data_url=to_data_url(blob, media_type), media_type=media_type)
        text = _field(part, "text")
        if isinstance(text, str) and text.strip() and not _field(part, "thought"):
            texts.append(text.strip())

    if texts:
        return TextOnly("\n".join(texts))

    reason = _block_reason(response)
    if reason:
        return Failure(f"{NO_OUTPUT_MESSAGE} (blocked: {reason})", FailureKind.CLASSIFICATION)
    return Failure(NO_OUTPUT_MESSAGE, FailureKind.CLASSIFICATION)


class EditClient:
    def __init__(self, model):
        self.model = model

    async def _call(self, request: EditRequest):
        if inspect.iscoroutinefunction(self.model.edit):
            return await self.model.edit(request)
        return await asyncio.to_thread(self.model.edit, request)

    async def submit(self, request: EditRequest) -> EditOutcome:
        try:
            response = await self._call(request)
        except Exception as e:
            logger.warning("Edit request failed: %s", e)
            return Failure(str(e).strip() or GENERIC_ERROR_MESSAGE, FailureKind.REMOTE)

        try:
            outcome = classify_response(response)
        except Exception as e:
            logger.exception("Could not interpret model response")
            return Failure(str(e).strip() or GENERIC_ERROR_MESSAGE, FailureKind.REMOTE)

        logger.info("Edit finished with %s", type(outcome).__name__)
        return outcome

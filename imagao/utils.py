import base64
import binascii
import logging
import mimetypes
import time
from os import PathLike
from pathlib import Path
from typing import Optional, Tuple, Union

from .errors import RemoteFault

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 50 * 1024 * 1024


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_data_url(data: Union[str, bytes], media_type: str) -> str:
    if isinstance(data, (bytes, bytearray)):
        data = encode_base64(data)
    return f"data:{media_type};base64,{data}"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a ``data:<type>;base64,<payload>`` URL into media type and raw bytes."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("not a base64 data URL")
    media_type = header[len("data:"):-len(";base64")] or "application/octet-stream"
    try:
        return media_type, base64.b64decode(payload, validate=True)
    except (ValueError, binascii.Error) as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


def export_filename(media_type: str = "image/png", timestamp: Optional[float] = None) -> str:
    if timestamp is None:
        timestamp = time.time()
    extension = mimetypes.guess_extension(media_type) or ".png"
    if extension in (".jpe", ".jpeg"):
        extension = ".jpg"
    return f"imagao-edit-{int(timestamp * 1000)}{extension}"


def save_data_url(data_url: str, directory: Union[str, PathLike], timestamp: Optional[float] = None) -> Path:
    media_type, raw = parse_data_url(data_url)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(media_type, timestamp)
    path.write_bytes(raw)
    logger.info("Saved edited image to %s", path)
    return path


def _error_message(response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return None


def log_and_raise_for_status(response) -> None:
    if 200 <= response.status_code < 300:
        return
    logger.error("Request failed: %s %s", response.status_code, response.text[:200])
    message = _error_message(response) or f"{response.status_code} {getattr(response, 'reason', None) or 'error'}"
    raise RemoteFault(message, status_code=response.status_code)

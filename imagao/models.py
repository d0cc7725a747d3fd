import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict

from .errors import InvalidInput
from .utils import MAX_IMAGE_BYTES


class SessionState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class FailureKind(str, Enum):
    CLASSIFICATION = "classification"
    REMOTE = "remote"
    FAULT = "fault"


@dataclass(frozen=True)
class RawFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @classmethod
    def from_path(
            cls,
            path: Union[str, PathLike],
            content_type: Optional[str] = None,
            max_bytes: int = MAX_IMAGE_BYTES
    ) -> "RawFile":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")
        if path.stat().st_size > max_bytes:
            raise InvalidInput(f"image exceeds {max_bytes} bytes")
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content_type=content_type or "application/octet-stream",
                   data=path.read_bytes())


class DisplayHandle:
    """Decoded copy of the original image kept for rendering.

    The handle is borrowed from the session and revoked on replacement or reset;
    after ``release()`` the image is closed and can no longer be read.
    """

    def __init__(self, image: Image.Image):
        self._image: Optional[Image.Image] = image

    @property
    def released(self) -> bool:
        return self._image is None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError("display handle has been released")
        return self._image

    @property
    def size(self):
        return self.image.size

    def release(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> "DisplayHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


@dataclass
class NormalizedImage:
    data: str = field(repr=False)
    media_type: str
    display: DisplayHandle = field(repr=False)

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


class EditRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction: str
    image_data: str
    media_type: str


@dataclass(frozen=True)
class ImageProduced:
    data_url: str = field(repr=False)
    media_type: str = "image/png"


@dataclass(frozen=True)
class TextOnly:
    message: str


@dataclass(frozen=True)
class Failure:
    reason: str
    kind: FailureKind = FailureKind.REMOTE


EditOutcome = Union[ImageProduced, TextOnly, Failure]

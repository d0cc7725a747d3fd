import logging
import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .edit_client import EditClient
from .generation import DEFAULT_BASE_URL, DEFAULT_MODEL, GeminiImageEditor
from .utils import MAX_IMAGE_BYTES

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class EditorSettings(BaseModel):
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=120.0, gt=0)
    max_image_bytes: int = Field(default=MAX_IMAGE_BYTES, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EditorSettings":
        if environ is None:
            load_dotenv()
            environ = os.environ
        values = {
            "api_key": environ.get("GEMINI_API_KEY"),
            "model": environ.get("GEMINI_MODEL"),
            "base_url": environ.get("BACKEND"),
            "timeout": environ.get("REQUEST_TIMEOUT"),
            "max_image_bytes": environ.get("MAX_IMAGE_BYTES"),
            "log_level": environ.get("LOG_LEVEL"),
        }
        return cls(**{k: v for k, v in values.items() if v not in (None, "")})


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def create_edit_client(settings: EditorSettings) -> EditClient:
    if not settings.api_key:
        raise ValueError("API key must be set in the GEMINI_API_KEY environment variable.")
    editor = GeminiImageEditor(
        api_key=settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
        timeout=settings.timeout,
    )
    return EditClient(editor)

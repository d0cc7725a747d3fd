import logging
from os import PathLike
from pathlib import Path
from typing import Callable, List, Optional, Union

from .edit_client import GENERIC_ERROR_MESSAGE
from .image_source import ImageSource
from .models import (
    EditOutcome, Failure, FailureKind, ImageProduced, NormalizedImage, RawFile, SessionState, TextOnly
)
from .request_builder import build_request
from .utils import save_data_url

logger = logging.getLogger(__name__)

Listener = Callable[["EditSession"], None]


class EditSession:
    """State machine for one image and its edit cycles.

    The session owns the current image, the instruction text and the last
    outcome, and is the only thing that mutates them. Only one ``generate()``
    can be in flight; until its remote call returns, further ``generate()`` and
    ``acquire_image()`` calls are ignored, even if ``reset()`` already moved the
    session back to ``IDLE``. Every transition bumps
    a generation counter, so a response that completes after ``reset()`` (or
    after a newer image was acquired) is dropped instead of being applied.
    """

    def __init__(self, client, image_source: Optional[ImageSource] = None):
        self.client = client
        self.image_source = image_source or ImageSource()
        self.instruction: str = ""
        self._state = SessionState.IDLE
        self._image: Optional[NormalizedImage] = None
        self._outcome: Optional[EditOutcome] = None
        self._result: Optional[str] = None
        self._error: Optional[str] = None
        self._generation = 0
        self._in_flight = False
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def image(self) -> Optional[NormalizedImage]:
        return self._image

    @property
    def outcome(self) -> Optional[EditOutcome]:
        return self._outcome

    @property
    def result(self) -> Optional[str]:
        return self._result

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def busy(self) -> bool:
        return self._in_flight

    @property
    def can_generate(self) -> bool:
        return (
            not self._in_flight
            and self._state is not SessionState.LOADING
            and self._image is not None
            and bool(self.instruction.strip())
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _clear_result(self) -> None:
        self._outcome = None
        self._result = None
        self._error = None

    def _release_image(self) -> None:
        if self._image is not None:
            self._image.display.release()
            self._image = None

    async def acquire_image(self, raw_file: RawFile) -> Optional[NormalizedImage]:
        if self._in_flight:
            logger.info("Ignoring image while an edit is in flight")
            return None

        self.image_source.validate(raw_file)
        self._generation += 1
        token = self._generation
        image = await self.image_source.acquire(raw_file)
        if token != self._generation:
            logger.info("Discarding image %s acquired for a stale session", raw_file.name)
            image.display.release()
            return None

        self._release_image()
        self._image = image
        self._clear_result()
        self._state = SessionState.IDLE
        self._notify()
        return image

    async def generate(self) -> Optional[EditOutcome]:
        if not self.can_generate:
            return None

        request = build_request(self._image, self.instruction)
        self._generation += 1
        token = self._generation
        self._in_flight = True
        self._state = SessionState.LOADING
        self._clear_result()
        self._notify()

        try:
            outcome = await self.client.submit(request)
        except Exception as e:
            logger.exception("Edit client raised")
            outcome = Failure(str(e).strip() or GENERIC_ERROR_MESSAGE, FailureKind.FAULT)
        finally:
            self._in_flight = False

        if token != self._generation:
            logger.info("Discarding stale edit response")
            self._notify()
            return None

        self._outcome = outcome
        if isinstance(outcome, ImageProduced):
            self._result = outcome.data_url
            self._state = SessionState.SUCCESS
        elif isinstance(outcome, TextOnly):
            self._error = outcome.message
            self._state = SessionState.ERROR
        elif isinstance(outcome, Failure):
            self._error = outcome.reason or GENERIC_ERROR_MESSAGE
            self._state = SessionState.ERROR
        else:
            self._outcome = Failure(GENERIC_ERROR_MESSAGE, FailureKind.FAULT)
            self._error = GENERIC_ERROR_MESSAGE
            self._state = SessionState.ERROR
        self._notify()
        return self._outcome

    def reset(self) -> None:
        self._generation += 1
        self._release_image()
        self.instruction = ""
        self._clear_result()
        self._state = SessionState.IDLE
        self._notify()

    def close(self) -> None:
        self.reset()

    def __enter__(self) -> "EditSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def save_result(self, directory: Union[str, PathLike]) -> Path:
        if self._result is None:
            raise ValueError("no edited image to save")
        return save_data_url(self._result, directory)

from __future__ import annotations

import asyncio

import pydantic
import pytest

from imagao import ImageSource, InvalidInput, build_request


@pytest.fixture()
def normalized(jpeg_file):
    image = asyncio.run(ImageSource().acquire(jpeg_file))
    yield image
    image.display.release()


def test_build_request_combines_image_and_instruction(normalized) -> None:
    request = build_request(normalized, "  Convert to black and white ")

    assert request.instruction == "Convert to black and white"
    assert request.image_data == normalized.data
    assert request.media_type == "image/jpeg"


@pytest.mark.parametrize("instruction", ["", "   ", "\n\t", None])
def test_build_request_rejects_blank_instruction(normalized, instruction) -> None:
    with pytest.raises(InvalidInput):
        build_request(normalized, instruction)


def test_build_request_requires_image() -> None:
    with pytest.raises(InvalidInput, match="no image"):
        build_request(None, "make it pop")


def test_request_is_immutable(normalized) -> None:
    request = build_request(normalized, "test")
    with pytest.raises(pydantic.ValidationError):
        request.instruction = "something else"

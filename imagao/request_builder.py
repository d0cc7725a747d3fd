from typing import Optional

from .errors import InvalidInput
from .models import EditRequest, NormalizedImage


def build_request(image: Optional[NormalizedImage], instruction: Optional[str]) -> EditRequest:
    if image is None:
        raise InvalidInput("no image selected")
    text = (instruction or "").strip()
    if not text:
        raise InvalidInput("instruction is empty")
    return EditRequest(instruction=text, image_data=image.data, media_type=image.media_type)

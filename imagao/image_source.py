import asyncio
import io
import logging

from PIL import Image, UnidentifiedImageError

from .errors import InvalidInput
from .models import DisplayHandle, NormalizedImage, RawFile
from .utils import MAX_IMAGE_BYTES, encode_base64

logger = logging.getLogger(__name__)


class ImageSource:
    """Turns a user-supplied file into a :class:`NormalizedImage`.

    The base64 payload sent to the model and the display handle used for
    rendering are both produced from the same source bytes. Releasing a handle
    that has been superseded is up to whoever holds it (normally the session).
    """

    def __init__(self, max_bytes: int = MAX_IMAGE_BYTES):
        self.max_bytes = max_bytes

    def validate(self, raw_file: RawFile) -> None:
        content_type = (raw_file.content_type or "").strip().lower()
        if not content_type.startswith("image/"):
            raise InvalidInput("not an image")
        if not raw_file.data:
            raise InvalidInput("image file is empty")
        if len(raw_file.data) > self.max_bytes:
            raise InvalidInput(f"image exceeds {self.max_bytes} bytes")

    async def acquire(self, raw_file: RawFile) -> NormalizedImage:
        self.validate(raw_file)
        image = await asyncio.to_thread(self._decode, raw_file)
        logger.info("Acquired %s (%s, %d bytes)", raw_file.name, image.media_type, len(raw_file.data))
        return image

    @staticmethod
    def _decode(raw_file: RawFile) -> NormalizedImage:
        data = raw_file.data
        try:
            picture = Image.open(io.BytesIO(data))
            picture.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise InvalidInput(f"could not decode image: {raw_file.name}") from e
        return NormalizedImage(
            data=encode_base64(data),
            media_type=raw_file.content_type.strip().lower(),
            display=DisplayHandle(picture),
        )

from .config import EditorSettings, configure_logging, create_edit_client
from .edit_client import EditClient, classify_response
from .errors import InvalidInput, RemoteFault
from .generation import GeminiImageEditor
from .image_source import ImageSource
from .models import (
    DisplayHandle, EditOutcome, EditRequest, Failure, FailureKind, ImageProduced, NormalizedImage, RawFile,
    SessionState, TextOnly
)
from .request_builder import build_request
from .session import EditSession

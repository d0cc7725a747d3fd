import logging
from typing import Optional

import requests

from .errors import RemoteFault
from .models import EditRequest
from .utils import log_and_raise_for_status

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiImageEditor:
    """Sends one edit request to a Gemini image model via ``generateContent``.

    Returns the decoded JSON body as-is; interpreting it is left to
    :class:`imagao.edit_client.EditClient`. Transport failures, non-2xx
    statuses and undecodable bodies raise :class:`RemoteFault`.
    """

    def __init__(
            self,
            api_key: str,
            model: str = DEFAULT_MODEL,
            base_url: str = DEFAULT_BASE_URL,
            timeout: float = 120.0,
            session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def model_url(self) -> str:
        return f"{self.base_url}/models/{self.model}"

    def _headers(self) -> dict:
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    @staticmethod
    def build_payload(request: EditRequest) -> dict:
        return {
            "contents": [{
                "parts": [
                    {"inlineData": {"mimeType": request.media_type, "data": request.image_data}},
                    {"text": request.instruction},
                ]
            }],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    def edit(self, request: EditRequest) -> dict:
        logger.info("Submitting edit to %s", self.model)
        try:
            response = self.session.post(
                f"{self.model_url}:generateContent",
                json=self.build_payload(request),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", self.model, e)
            raise RemoteFault(str(e) or type(e).__name__) from e
        log_and_raise_for_status(response)

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteFault("model returned a malformed response") from e
        if not isinstance(body, dict):
            raise RemoteFault("model returned a malformed response")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RemoteFault(message or "model reported an error")
        return body

    def health_check(self) -> dict:
        try:
            response = self.session.get(self.model_url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteFault(str(e) or type(e).__name__) from e
        log_and_raise_for_status(response)
        return response.json()

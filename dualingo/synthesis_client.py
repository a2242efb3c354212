"""
Client for the text-to-speech endpoint.
"""

import json
import logging
from typing import Optional

import httpx

from .errors import DecodeError, TransportError
from .models import SynthesisResult

logger = logging.getLogger(__name__)


class SpeechSynthesisClient:
    """
    Requests synthesized speech for translated text.

    The response carries the audio as base64 in `audio_content_base64`.
    """

    def __init__(self, url: str, client: Optional[httpx.Client] = None, timeout: Optional[float] = None):
        self.url = url
        self._client = client or httpx.Client()
        self._owns_client = client is None
        self._timeout = timeout

    def send(self, text: str, language_code: str) -> SynthesisResult:
        """
        Synthesize text and decode the returned audio.

        Args:
            text: Text to speak
            language_code: Language of the text (the detected language code)

        Returns:
            Decoded audio bytes

        Raises:
            TransportError: On network errors or non-2xx status
            DecodeError: On malformed JSON, missing field or invalid base64
        """
        body = {"text": text, "language_code": language_code}
        logger.info(f"Starting textToSpeech with text: {text}")
        logger.info(f"Language Code: {language_code}")

        kwargs = {} if self._timeout is None else {"timeout": self._timeout}
        try:
            response = self._client.post(self.url, json=body, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Error in textToSpeech request: {e}") from e

        logger.info(f"Response status code: {response.status_code}")

        if not response.is_success:
            logger.error(f"textToSpeech server response: {response.text}")
            raise TransportError(
                f"textToSpeech failed with status {response.status_code}",
                status_code=response.status_code
            )

        if not response.content:
            raise DecodeError("No data received in textToSpeech response")

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"JSON decoding failed: {e}") from e

        result = SynthesisResult.from_payload(payload)
        logger.info(f"Received audio content: {len(result.audio_bytes)} bytes")
        return result

    def close(self):
        if self._owns_client:
            self._client.close()

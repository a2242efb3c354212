"""
Client for the speech upload endpoint.

Sends a recorded WAV file as multipart/form-data together with the language
mode and decodes the detected language, transcription and translation.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Optional, Union

import httpx

from .errors import DecodeError, DeviceError, TransportError
from .models import LanguageMode, TranslationResult

logger = logging.getLogger(__name__)


def build_multipart_body(
    file_name: str,
    audio: bytes,
    language_mode: Union[LanguageMode, str],
    boundary: str
) -> bytes:
    """
    Build the two-part form body: the audio file, then the language mode.

    Args:
        file_name: Name reported in the audio part's Content-Disposition
        audio: WAV file contents
        language_mode: One of English, Taiwanese, Any
        boundary: Multipart boundary (without leading dashes)

    Returns:
        Encoded body, terminated by the closing boundary marker
    """
    mode = LanguageMode(language_mode).value
    prefix = f"--{boundary}\r\n".encode()

    body = bytearray()
    body += prefix
    body += f'Content-Disposition: form-data; name="audio"; filename="{file_name}"\r\n'.encode()
    body += b"Content-Type: audio/wav\r\n\r\n"
    body += audio
    body += b"\r\n"
    body += prefix
    body += b'Content-Disposition: form-data; name="language_mode"\r\n\r\n'
    body += f"{mode}\r\n".encode()
    body += f"--{boundary}--\r\n".encode()
    return bytes(body)


def new_boundary() -> str:
    return f"Boundary-{str(uuid.uuid4()).upper()}"


class TranslationClient:
    """
    Uploads recordings to the process-and-translate endpoint.
    """

    def __init__(self, url: str, client: Optional[httpx.Client] = None, timeout: Optional[float] = None):
        """
        Initialize client.

        Args:
            url: Full endpoint URL
            client: Shared httpx client (one is created if omitted)
            timeout: Request timeout in seconds (None keeps the httpx default)
        """
        self.url = url
        self._client = client or httpx.Client()
        self._owns_client = client is None
        self._timeout = timeout

    def send(self, file_path: Union[str, Path], language_mode: Union[LanguageMode, str]) -> TranslationResult:
        """
        Upload a recording and decode the translation.

        Raises:
            DeviceError: If the audio file cannot be read
            TransportError: On network errors or non-2xx status
            DecodeError: If the response is not the expected JSON shape
        """
        path = Path(file_path)
        try:
            audio = path.read_bytes()
        except OSError as e:
            raise DeviceError(f"Error loading audio data: {e}") from e

        boundary = new_boundary()
        body = build_multipart_body(path.name, audio, language_mode, boundary)
        headers = {"Content-Type": f"multipart/form-data; boundary={boundary}"}

        logger.info(f"Starting processAndTranslate with {path} ({len(audio)} bytes)")
        logger.info(f"Language Mode: {LanguageMode(language_mode).value}")

        kwargs = {} if self._timeout is None else {"timeout": self._timeout}
        try:
            response = self._client.post(self.url, content=body, headers=headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is not an HTTPError subclass
            raise TransportError(f"Error in processAndTranslate request: {e}") from e

        logger.info(f"Response status code: {response.status_code}")
        logger.debug(f"Raw response data in processAndTranslate: {response.text}")

        if response.status_code == 500:
            logger.error(f"Server error occurred. Server response: {response.text}")
        if not response.is_success:
            raise TransportError(
                f"processAndTranslate failed with status {response.status_code}",
                status_code=response.status_code
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"JSON decoding failed: {e}") from e

        result = TranslationResult.from_payload(payload)
        logger.info(f"Detected language: {result.detected_language}")
        return result

    def close(self):
        if self._owns_client:
            self._client.close()

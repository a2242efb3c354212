"""
Unit tests for the speech upload client (HTTP mocked with httpx.MockTransport).
"""

import json

import httpx
import pytest

from dualingo.errors import DecodeError, DeviceError, TransportError
from dualingo.models import LanguageMode, TranslationResult
from dualingo.translation_client import TranslationClient, build_multipart_body

URL = "https://translator.test/process-and-translate/"


@pytest.fixture
def wav_file(tmp_path):
    path = tmp_path / "recording_1700000000.0.wav"
    path.write_bytes(b"RIFF\x24\x00\x00\x00WAVEfmt fake-pcm")
    return path


def make_client(handler):
    return TranslationClient(URL, client=httpx.Client(transport=httpx.MockTransport(handler)))


def ok_handler(requests):
    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={"detected_language": "en", "processed_text": "hi", "translated_text": "hello"}
        )
    return handler


def test_build_multipart_body_layout():
    body = build_multipart_body("clip.wav", b"\x01\x02\x03", LanguageMode.ANY, "Boundary-XYZ")

    expected = (
        b"--Boundary-XYZ\r\n"
        b'Content-Disposition: form-data; name="audio"; filename="clip.wav"\r\n'
        b"Content-Type: audio/wav\r\n\r\n"
        b"\x01\x02\x03\r\n"
        b"--Boundary-XYZ\r\n"
        b'Content-Disposition: form-data; name="language_mode"\r\n\r\n'
        b"Any\r\n"
        b"--Boundary-XYZ--\r\n"
    )
    assert body == expected


def test_build_multipart_body_accepts_string_mode():
    body = build_multipart_body("clip.wav", b"", "Taiwanese", "B")

    assert b"\r\n\r\nTaiwanese\r\n--B--\r\n" in body


def test_build_multipart_body_rejects_unknown_mode():
    with pytest.raises(ValueError):
        build_multipart_body("clip.wav", b"", "Klingon", "B")


def test_send_request_contains_both_parts_in_order(wav_file):
    requests = []
    client = make_client(ok_handler(requests))

    client.send(wav_file, LanguageMode.ANY)

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == URL

    content_type = request.headers["Content-Type"]
    assert content_type.startswith("multipart/form-data; boundary=Boundary-")
    boundary = content_type.split("boundary=", 1)[1]

    body = request.content
    audio_part = body.index(b'name="audio"; filename="recording_1700000000.0.wav"')
    mode_part = body.index(b'name="language_mode"')
    assert audio_part < mode_part
    assert wav_file.read_bytes() in body
    assert b"\r\n\r\nAny\r\n" in body
    assert body.endswith(f"--{boundary}--\r\n".encode())


def test_send_decodes_result(wav_file):
    client = make_client(ok_handler([]))

    result = client.send(wav_file, "English")

    assert result == TranslationResult(detected_language="en", processed_text="hi", translated_text="hello")


def test_send_uses_fresh_boundary_per_request(wav_file):
    requests = []
    client = make_client(ok_handler(requests))

    client.send(wav_file, LanguageMode.ANY)
    client.send(wav_file, LanguageMode.ANY)

    assert requests[0].headers["Content-Type"] != requests[1].headers["Content-Type"]


@pytest.mark.parametrize("status", [400, 404, 500, 503])
def test_send_non_2xx_raises_transport_error(wav_file, status):
    client = make_client(lambda request: httpx.Response(status, text="Internal Server Error"))

    with pytest.raises(TransportError) as exc_info:
        client.send(wav_file, LanguageMode.ANY)

    assert exc_info.value.status_code == status


def test_send_network_error_raises_transport_error(wav_file):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError):
        client.send(wav_file, LanguageMode.ANY)


def test_send_malformed_json_raises_decode_error(wav_file):
    client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

    with pytest.raises(DecodeError):
        client.send(wav_file, LanguageMode.ANY)


def test_send_wrong_shape_raises_decode_error(wav_file):
    client = make_client(
        lambda request: httpx.Response(200, content=json.dumps({"detected_language": "en"}).encode())
    )

    with pytest.raises(DecodeError):
        client.send(wav_file, LanguageMode.ANY)


def test_send_missing_file_raises_device_error(tmp_path):
    requests = []
    client = make_client(ok_handler(requests))

    with pytest.raises(DeviceError):
        client.send(tmp_path / "missing.wav", LanguageMode.ANY)

    assert requests == []


def test_close_leaves_shared_client_open(wav_file):
    http = httpx.Client(transport=httpx.MockTransport(ok_handler([])))
    client = TranslationClient(URL, client=http)

    client.close()

    assert not http.is_closed


def test_send_invalid_url_raises_transport_error(wav_file):
    requests = []
    client = TranslationClient(
        "http://[::1/process-and-translate/",
        client=httpx.Client(transport=httpx.MockTransport(ok_handler(requests)))
    )

    with pytest.raises(TransportError, match="processAndTranslate"):
        client.send(wav_file, LanguageMode.ANY)

    assert requests == []

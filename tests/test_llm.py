"""
Tests for payload construction and the Gemini transport client
"""
import pytest
import requests

from app.image.encoder import EncodedImage
from app.llm import client as llm_client
from app.llm.provider_config import _read_timeout, load_key
from app.llm.service import build_fusion_payload


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw_text=None):
        self.status_code = status_code
        self._body = body
        self._raw_text = raw_text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}", response=self)

    def json(self):
        if self._raw_text is not None:
            raise ValueError("not json")
        return self._body


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_payload_orders_images_before_prompt():
    images = [EncodedImage(data="AAA", mime_type="image/png"), EncodedImage(data="BBB", mime_type="image/jpeg")]
    payload = build_fusion_payload(images, "merge these")

    assert payload == {
        "contents": [{"parts": [
            {"inlineData": {"mimeType": "image/png", "data": "AAA"}},
            {"inlineData": {"mimeType": "image/jpeg", "data": "BBB"}},
            {"text": "merge these"},
        ]}],
        "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
    }


def test_send_request_posts_with_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    http = FakeHttp(FakeResponse(body={"candidates": []}))

    data = llm_client.send_generate_request({"contents": []}, model="m1", session=http)

    assert data == {"candidates": []}
    url, kwargs = http.calls[0]
    assert url.endswith("/models/m1:generateContent")
    assert kwargs["headers"]["x-goog-api-key"] == "secret"
    assert kwargs["json"] == {"contents": []}


def test_missing_key(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    with pytest.raises(RuntimeError, match="GEMINI KEY FILE NOT FOUND"):
        llm_client.send_generate_request({}, session=FakeHttp())


def test_http_error_is_sanitized(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    http = FakeHttp(FakeResponse(status_code=503, body={"error": "internal details"}))
    with pytest.raises(RuntimeError) as exc:
        llm_client.send_generate_request({}, session=http)
    assert str(exc.value) == "GEMINI HTTP ERROR (503)"


def test_transport_error_is_sanitized(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    http = FakeHttp(error=requests.ConnectionError("dns failure"))
    with pytest.raises(RuntimeError) as exc:
        llm_client.send_generate_request({}, session=http)
    assert str(exc.value) == "GEMINI HTTP ERROR"


def test_non_json_body(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    http = FakeHttp(FakeResponse(raw_text="<html>"))
    with pytest.raises(RuntimeError, match="GEMINI REQUEST FAILED"):
        llm_client.send_generate_request({}, session=http)


def test_load_key_prefers_env_then_file(monkeypatch, tmp_path):
    key_file = tmp_path / "gemini.key"
    key_file.write_text("from-file\n")

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assert load_key(str(key_file)) == "from-file"

    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    assert load_key(str(key_file)) == "from-env"

    assert load_key(None) is None
    monkeypatch.delenv("GEMINI_API_KEY")
    assert load_key(str(tmp_path / "missing.key")) is None


@pytest.mark.parametrize("raw, expected", [(None, None), ("", None), ("0", None), ("30", 30.0), ("2.5", 2.5)])
def test_read_timeout(raw, expected):
    assert _read_timeout(raw) == expected

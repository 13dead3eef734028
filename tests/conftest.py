"""
Pytest configuration and fixtures
"""
import io
import os

import pytest
from PIL import Image

# Never reach the real model from tests.
os.environ.setdefault("GEMINI_API_KEY", "test-key")

from app.image.encoder import UploadedFile
from app.session.state import FusionSession


def make_png(color=(200, 30, 30), size=(8, 8)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


def image_response(data="UEFZTE9BRA==", mime_type="image/png", text="Fused!"):
    parts = [{"inlineData": {"mimeType": mime_type, "data": data}}]
    if text is not None:
        parts.append({"text": text})
    return {"candidates": [{"content": {"parts": parts}}]}


def text_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeFusionClient:
    """Stand-in for the remote collaborator; records every call."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else image_response()
        self.error = error
        self.calls = []

    def generate(self, images, prompt):
        self.calls.append((list(images), prompt))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def image_file(png_bytes):
    """Factory for in-memory image uploads."""
    def _make(name="photo.png", content_type="image/png", data=None):
        return UploadedFile(filename=name, content_type=content_type, data=data or png_bytes)
    return _make


@pytest.fixture
def text_file():
    return UploadedFile(filename="notes.txt", content_type="text/plain", data=b"hello")


@pytest.fixture
def session():
    return FusionSession()


@pytest.fixture
def ready_session(session, image_file):
    """Two populated slots and a prompt: ready to fuse."""
    session.set_slot(0, image_file("a.png"))
    session.set_slot(1, image_file("b.png"))
    session.set_prompt("merge these")
    return session

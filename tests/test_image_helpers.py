"""
Tests for file encoding, previews and data URL helpers
"""
import base64
import io

import pytest
from PIL import Image

from app.image.data_url import build_data_url, decode_data_url
from app.image.encoder import EncodedImage, FileReadError, UploadedFile, encode_file, encode_files
from app.image.preview import PreviewRegistry


@pytest.mark.asyncio
async def test_encode_file_from_memory(image_file, png_bytes):
    encoded = await encode_file(image_file(content_type="image/png"))
    assert encoded == EncodedImage(data=base64.b64encode(png_bytes).decode("ascii"), mime_type="image/png")


@pytest.mark.asyncio
async def test_encode_file_from_path(tmp_path, png_bytes):
    path = tmp_path / "pic.jpg"
    path.write_bytes(png_bytes)
    encoded = await encode_file(UploadedFile(filename="pic.jpg", content_type="image/jpeg", path=str(path)))
    assert base64.b64decode(encoded.data) == png_bytes
    assert encoded.mime_type == "image/jpeg"


@pytest.mark.asyncio
async def test_encode_file_read_error(tmp_path):
    missing = UploadedFile(filename="gone.png", content_type="image/png", path=str(tmp_path / "gone.png"))
    with pytest.raises(FileReadError):
        await encode_file(missing)


@pytest.mark.asyncio
async def test_encode_files_keeps_order():
    uploads = [
        UploadedFile(filename=f"{i}.png", content_type="image/png", data=bytes([i]) * (50 - i))
        for i in range(5)
    ]
    encoded = await encode_files(uploads)
    assert [base64.b64decode(e.data) for e in encoded] == [u.data for u in uploads]


def test_preview_registry_lifecycle(image_file):
    registry = PreviewRegistry()
    url = registry.create(image_file())
    token = url[len("preview://"):]

    body, media_type = registry.get(token)
    assert media_type == "image/png"
    with Image.open(io.BytesIO(body)) as img:
        assert img.size == (8, 8)
    assert registry.live_count == 1

    registry.revoke(url)
    registry.revoke(url)
    registry.revoke(None)
    assert registry.get(token) is None
    assert registry.live_count == 0


def test_preview_falls_back_to_raw_bytes():
    registry = PreviewRegistry()
    upload = UploadedFile(filename="odd.png", content_type="image/png", data=b"not really a png")
    url = registry.create(upload)
    body, media_type = registry.get(url[len("preview://"):])
    assert body == b"not really a png"
    assert media_type == "image/png"


def test_preview_thumbnail_is_bounded():
    raw = io.BytesIO()
    Image.new("RGB", (1024, 512), (0, 0, 255)).save(raw, format="PNG")
    registry = PreviewRegistry()
    url = registry.create(UploadedFile(filename="big.png", content_type="image/png", data=raw.getvalue()))
    body, _ = registry.get(url[len("preview://"):])
    with Image.open(io.BytesIO(body)) as img:
        assert max(img.size) <= 256


def test_preview_of_palette_image_closes_converted_copy(monkeypatch):
    raw = io.BytesIO()
    Image.new("P", (300, 300), 3).save(raw, format="PNG")

    converted = []
    closed = []
    original_convert = Image.Image.convert
    original_close = Image.Image.close

    def tracking_convert(self, *args, **kwargs):
        image = original_convert(self, *args, **kwargs)
        converted.append(image)
        return image

    def tracking_close(self):
        closed.append(self)
        original_close(self)

    monkeypatch.setattr(Image.Image, "convert", tracking_convert)
    monkeypatch.setattr(Image.Image, "close", tracking_close)

    registry = PreviewRegistry()
    url = registry.create(UploadedFile(filename="pal.png", content_type="image/png", data=raw.getvalue()))
    body, media_type = registry.get(url[len("preview://"):])

    assert media_type == "image/png"
    assert converted
    assert any(image is converted[-1] for image in closed)

    monkeypatch.undo()
    with Image.open(io.BytesIO(body)) as img:
        assert img.mode == "RGBA"
        assert max(img.size) <= 256


def test_data_url_round_trip_and_errors():
    url = build_data_url("image/png", base64.b64encode(b"abc").decode())
    assert url == "data:image/png;base64,YWJj"
    assert decode_data_url(url) == ("image/png", b"abc")

    for bad in ["", "http://x", "data:image/png,abc", "data:image/png;base64,@@@"]:
        with pytest.raises(ValueError):
            decode_data_url(bad)

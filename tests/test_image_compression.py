import base64
import io
from types import SimpleNamespace

import pytest
from PIL import Image
from starlette.datastructures import Headers, UploadFile

from app.utils import image_compression
from app.utils.errors import ImageDecodeError, ImageReadError, ResourceLimitError, SizeLimitExceeded
from app.utils.image_compression import (
    compress_bytes,
    compress_image_to_base64,
    estimate_encoded_kb,
    get_base64_size,
    validate_image_file,
)

from tests.conftest import make_image_bytes, make_noise_bytes


def upload(data: bytes, content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        size=len(data),
        filename="car.png",
        headers=Headers({"content-type": content_type}),
    )


def decode_data_url(data_url: str) -> Image.Image:
    header, payload = data_url.split(",", 1)
    assert header == "data:image/jpeg;base64"
    return Image.open(io.BytesIO(base64.b64decode(payload)))


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/webp"])
def test_validate_accepts_supported_types(content_type):
    result = validate_image_file(SimpleNamespace(content_type=content_type, size=2048))

    assert result.valid
    assert result.error is None


def test_validate_rejects_unsupported_type():
    result = validate_image_file(SimpleNamespace(content_type="image/gif", size=2048))

    assert not result.valid
    assert result.error == "Invalid file type. Please upload a JPEG, PNG, or WebP image."


def test_validate_rejects_files_over_ten_megabytes():
    limit = 10 * 1024 * 1024

    assert validate_image_file(SimpleNamespace(content_type="image/png", size=limit)).valid

    result = validate_image_file(SimpleNamespace(content_type="image/png", size=limit + 1))
    assert not result.valid
    assert result.error == "File too large. Maximum size is 10MB."


def test_base64_size_ignores_data_url_prefix():
    payload = "A" * 4096

    assert get_base64_size(payload) == 3.0
    assert get_base64_size("data:image/jpeg;base64," + payload) == get_base64_size(payload)
    assert get_base64_size("data:image/png;base64," + payload) == get_base64_size(payload)


@pytest.mark.asyncio
async def test_wide_image_is_capped_at_max_width():
    data_url = await compress_image_to_base64(upload(make_image_bytes((4000, 3000))), max_width=1920)

    assert decode_data_url(data_url).size == (1920, 1440)
    assert estimate_encoded_kb(data_url) <= 500


@pytest.mark.asyncio
async def test_narrow_image_keeps_native_size():
    data_url = await compress_image_to_base64(upload(make_image_bytes((800, 600), fmt="JPEG")))

    assert decode_data_url(data_url).size == (800, 600)


@pytest.mark.asyncio
async def test_transparent_png_is_flattened_to_jpeg():
    data = make_image_bytes((300, 200), mode="RGBA", color=(10, 200, 30, 128))

    data_url = await compress_image_to_base64(upload(data))

    assert decode_data_url(data_url).mode == "RGB"


def test_quality_ladder_is_exhausted_before_failing(monkeypatch):
    tried = []
    encode = image_compression.encode_jpeg

    def recording_encode(img, quality):
        tried.append(quality)
        return encode(img, quality)

    monkeypatch.setattr(image_compression, "encode_jpeg", recording_encode)

    with pytest.raises(SizeLimitExceeded) as excinfo:
        compress_bytes(make_noise_bytes((512, 512)), max_size_kb=1)

    assert tried == pytest.approx([0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1])
    assert isinstance(excinfo.value, ResourceLimitError)
    assert "1KB" in str(excinfo.value)
    assert "smaller image" in str(excinfo.value)


def test_ladder_stops_once_under_target(monkeypatch):
    tried = []
    encode = image_compression.encode_jpeg

    def recording_encode(img, quality):
        tried.append(quality)
        return encode(img, quality)

    monkeypatch.setattr(image_compression, "encode_jpeg", recording_encode)

    compress_bytes(make_image_bytes((640, 480)), max_size_kb=500)

    assert tried == [0.8]


@pytest.mark.asyncio
async def test_size_limit_error_propagates_from_async_call():
    with pytest.raises(SizeLimitExceeded):
        await compress_image_to_base64(upload(make_noise_bytes((512, 512))), max_size_kb=1)


@pytest.mark.asyncio
async def test_undecodable_data_raises_decode_error():
    with pytest.raises(ImageDecodeError):
        await compress_image_to_base64(upload(b"definitely not an image", "image/jpeg"))


@pytest.mark.asyncio
async def test_unreadable_file_raises_read_error():
    class BrokenFile:
        content_type = "image/png"
        size = 10

        async def read(self):
            raise OSError("disk went away")

    with pytest.raises(ImageReadError) as excinfo:
        await compress_image_to_base64(BrokenFile())

    assert excinfo.value.message == "Failed to read file"

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from app.utils.errors import ImageDecodeError, ImageReadError, SizeLimitExceeded


logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

MAX_UPLOAD_SIZE_MB = 10
MAX_UPLOAD_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

DEFAULT_MAX_SIZE_KB = 500
DEFAULT_MAX_WIDTH = 1920
DEFAULT_QUALITY = 0.8

# quality ladder: 0.8, 0.7, ... 0.1
QUALITY_STEP = 0.1
MIN_QUALITY = 0.1

# base64 inflates the payload by roughly 1.37x, decoding shrinks it by 0.75
BASE64_OVERHEAD = 1.37
BASE64_DECODE_RATIO = 0.75

JPEG_DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass
class ImageValidationResult:
    valid: bool
    error: Optional[str] = None


def validate_image_file(file) -> ImageValidationResult:
    """
    Check declared media type and byte size of an upload.

    ``file`` only needs ``content_type`` and ``size`` attributes, which is
    what starlette's ``UploadFile`` provides.
    """
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        return ImageValidationResult(
            valid=False,
            error="Invalid file type. Please upload a JPEG, PNG, or WebP image.",
        )

    if file.size is not None and file.size > MAX_UPLOAD_BYTES:
        return ImageValidationResult(
            valid=False,
            error=f"File too large. Maximum size is {MAX_UPLOAD_SIZE_MB}MB.",
        )

    return ImageValidationResult(valid=True)


def get_base64_size(data: str) -> float:
    """Estimated decoded size in KB, ignoring any data URL header."""
    payload = data.split(",", 1)[1] if "," in data else data
    return (len(payload) * BASE64_DECODE_RATIO) / 1024


def estimate_encoded_kb(data_url: str) -> float:
    return len(data_url) / BASE64_OVERHEAD / 1024


def decode_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageDecodeError() from e

    return img.convert("RGB")


def resize_to_width(img: Image.Image, max_width: int) -> Image.Image:
    # Resize while keeping aspect ratio, never upscale
    w, h = img.size
    if w > max_width:
        new_height = max(1, int(h * (max_width / w)))
        img = img.resize((max_width, new_height), Image.LANCZOS)

    return img


def encode_jpeg(img: Image.Image, quality: float) -> str:
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=max(1, int(round(quality * 100))))
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return JPEG_DATA_URL_PREFIX + encoded


def compress_bytes(
    data: bytes,
    max_size_kb: float = DEFAULT_MAX_SIZE_KB,
    max_width: int = DEFAULT_MAX_WIDTH,
    quality: float = DEFAULT_QUALITY,
) -> str:
    img = resize_to_width(decode_image(data), max_width)

    current_quality = quality
    data_url = encode_jpeg(img, current_quality)

    # step down the ladder, re-encoding the already resized image
    while estimate_encoded_kb(data_url) > max_size_kb and current_quality > MIN_QUALITY:
        current_quality = max(MIN_QUALITY, round(current_quality - QUALITY_STEP, 2))
        data_url = encode_jpeg(img, current_quality)

    if estimate_encoded_kb(data_url) > max_size_kb:
        raise SizeLimitExceeded(max_size_kb)

    logger.debug(
        "Compressed image to %dx%d at quality %.1f (%.1fKB)",
        img.width,
        img.height,
        current_quality,
        estimate_encoded_kb(data_url),
    )
    return data_url


async def compress_image_to_base64(
    file,
    max_size_kb: float = DEFAULT_MAX_SIZE_KB,
    max_width: int = DEFAULT_MAX_WIDTH,
    quality: float = DEFAULT_QUALITY,
) -> str:
    """
    Read an uploaded image and return a ``data:image/jpeg;base64,`` string
    whose estimated size is at or under ``max_size_kb``.

    Raises SizeLimitExceeded if even the lowest quality is too big,
    ImageDecodeError for undecodable data and ImageReadError when the
    file itself cannot be read.
    """
    try:
        data = await file.read()
    except OSError as e:
        raise ImageReadError() from e

    return await run_in_threadpool(compress_bytes, data, max_size_kb, max_width, quality)

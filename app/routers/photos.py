from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.utils.image_compression import (
    DEFAULT_MAX_SIZE_KB,
    DEFAULT_MAX_WIDTH,
    DEFAULT_QUALITY,
    compress_image_to_base64,
    get_base64_size,
    validate_image_file,
)


router = APIRouter()


@router.post("")
async def prepare_photo(
    photo: UploadFile = File(...),
    max_size_kb: float = Form(DEFAULT_MAX_SIZE_KB, alias="maxSizeKB", gt=0),
    max_width: int = Form(DEFAULT_MAX_WIDTH, alias="maxWidth", gt=0),
    quality: float = Form(DEFAULT_QUALITY, ge=0, le=1),
):
    result = validate_image_file(photo)
    if not result.valid:
        return JSONResponse(status_code=400, content={"error": result.error})

    # compression errors are turned into responses in main
    data_url = await compress_image_to_base64(
        photo,
        max_size_kb=max_size_kb,
        max_width=max_width,
        quality=quality,
    )

    return {
        "photoBase64": data_url,
        "sizeKB": round(get_base64_size(data_url), 1),
    }

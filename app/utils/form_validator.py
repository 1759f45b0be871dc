import base64
import binascii
import os
import re
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.utils.errors import InvalidPhotoError, MissingFieldsError, ReportValidationError
from app.utils.image_compression import get_base64_size


DEFAULT_PLATE_STATE = os.getenv("DEFAULT_PLATE_STATE", "CA")
PHOTO_MAX_KB = float(os.getenv("PHOTO_MAX_KB", "1024"))

REQUIRED_FIELDS = ("reporter_email", "license_plate", "vehicle_make", "vehicle_color", "reason")

PHOTO_DATA_URL = re.compile(r"data:image/(?:jpeg|jpg|png|webp);base64,([A-Za-z0-9+/=]+)")


def normalize_plate(plate: str) -> str:
    return plate.strip().upper()


class ReportSubmission(BaseModel):
    """Typed view of a POST /api/reports body (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    # required, checked after parsing so a blank value counts as missing
    reporter_email: Optional[str] = Field(default=None, alias="reporterEmail")
    license_plate: Optional[str] = Field(default=None, alias="licensePlate")
    vehicle_make: Optional[str] = Field(default=None, alias="vehicleMake")
    vehicle_color: Optional[str] = Field(default=None, alias="vehicleColor")
    reason: Optional[str] = None

    plate_state: Optional[str] = Field(default=DEFAULT_PLATE_STATE, alias="plateState")
    vehicle_model: Optional[str] = Field(default=None, alias="vehicleModel")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180, allow_inf_nan=False)
    address: Optional[str] = None
    notes: Optional[str] = None
    photo_base64: Optional[str] = Field(default=None, alias="photoBase64")

    @field_validator("license_plate")
    @classmethod
    def uppercase_plate(cls, value):
        return normalize_plate(value) if value else value

    @field_validator("plate_state")
    @classmethod
    def default_plate_state(cls, value):
        return value or DEFAULT_PLATE_STATE

    @field_validator("vehicle_model", "address", "notes", "photo_base64")
    @classmethod
    def blank_to_none(cls, value):
        return value or None


def validate_photo(photo: str) -> str:
    if photo.startswith(("http://", "https://")):
        return photo

    match = PHOTO_DATA_URL.fullmatch(photo)
    if not match:
        raise InvalidPhotoError()

    try:
        base64.b64decode(match.group(1), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidPhotoError()

    if get_base64_size(photo) > PHOTO_MAX_KB:
        raise InvalidPhotoError(f"Photo exceeds {PHOTO_MAX_KB:g}KB limit")

    return photo


def validate_report_payload(body) -> ReportSubmission:
    if not isinstance(body, dict):
        raise ReportValidationError("Invalid report payload")

    try:
        submission = ReportSubmission.model_validate(body)
    except ValidationError as e:
        raise ReportValidationError("Invalid report payload") from e

    if any(not getattr(submission, field) for field in REQUIRED_FIELDS):
        raise MissingFieldsError()

    if submission.photo_base64:
        validate_photo(submission.photo_base64)

    return submission

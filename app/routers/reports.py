import logging
from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.db.db import get_session
from app.models.report import Report
from app.utils.errors import ReportValidationError
from app.utils.factories import get_clock, get_id_factory
from app.utils.form_validator import validate_report_payload


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_report(
    request: Request,
    session: Session = Depends(get_session),
    new_id=Depends(get_id_factory),
    clock=Depends(get_clock),
):
    try:
        body = await request.json()
    except ValueError:
        raise ReportValidationError("Invalid report payload")

    # raises MissingFieldsError / InvalidPhotoError, handled in main
    submission = validate_report_payload(body)

    now = clock()

    db_report = Report(
        id=new_id(),
        reporter_email=submission.reporter_email,
        license_plate=submission.license_plate,
        plate_state=submission.plate_state,
        vehicle_make=submission.vehicle_make,
        vehicle_model=submission.vehicle_model,
        vehicle_color=submission.vehicle_color,
        latitude=submission.latitude,
        longitude=submission.longitude,
        address=submission.address,
        reason=submission.reason,
        notes=submission.notes,
        photo_url=submission.photo_base64,
        status="pending",
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(db_report)
        session.commit()
        session.refresh(db_report)
    except Exception:
        session.rollback()
        logger.exception("Error creating report")
        return JSONResponse(status_code=500, content={"error": "Failed to create report"})

    logger.info("Created report %s", db_report.id)

    return JSONResponse(
        status_code=201,
        content={"success": True, "report": jsonable_encoder(db_report)},
    )

from typing import Optional
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel
from datetime import datetime


REPORT_STATUSES = ("pending", "submitted to city", "resolved", "dismissed")


class Report(SQLModel, table=True):
    __tablename__ = "reports"

    # id and timestamps are assigned explicitly by the router
    id: str = Field(primary_key=True)

    # Reporter info
    reporter_email: str

    # Vehicle info
    license_plate: str = Field(index=True)
    plate_state: str
    vehicle_make: str
    vehicle_model: Optional[str] = Field(default=None)
    vehicle_color: str

    # Location
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    address: Optional[str] = Field(default=None)

    # Details
    reason: str  # "72 hours", "expired tags", "other"
    notes: Optional[str] = Field(default=None)
    photo_url: Optional[str] = Field(default=None)  # URL or base64 data URL

    # Status
    status: str = Field(default="pending", index=True)  # see REPORT_STATUSES

    created_at: datetime
    updated_at: datetime

    __table_args__ = (
        # status must stay one of the known lifecycle values
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in REPORT_STATUSES) + ")",
            name="ck_reports_status",
        ),
    )

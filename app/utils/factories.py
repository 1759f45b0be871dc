import uuid
from datetime import datetime, timezone
from typing import Callable


def new_report_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# FastAPI dependencies, overridden in tests to pin generated values
def get_id_factory() -> Callable[[], str]:
    return new_report_id


def get_clock() -> Callable[[], datetime]:
    return utc_now

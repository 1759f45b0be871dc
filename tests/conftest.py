import io
import itertools
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.db import get_session
from app.main import app
from app.utils.factories import get_clock, get_id_factory


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def make_image_bytes(size, fmt="PNG", mode="RGB", color=(40, 90, 160)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_noise_bytes(size, fmt="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.effect_noise(size, 120).convert("RGB").save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    ids = (f"report-{n}" for n in itertools.count(1))

    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_id_factory] = lambda: lambda: next(ids)
    app.dependency_overrides[get_clock] = lambda: lambda: FIXED_NOW

    yield TestClient(app)

    app.dependency_overrides.clear()

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.schemas.models import MedicineCreate
from app.services.intake_store import IntakeStore
from app.services.medicines import MedicineService, get_service


@pytest.fixture
def store():
    s = IntakeStore.open(":memory:")
    yield s
    s.close()


@pytest.fixture
def service(store):
    return MedicineService(store, policy="preserve")


@pytest.fixture
def reset_service(store):
    return MedicineService(store, policy="reset")


@pytest.fixture
def aspirin():
    return MedicineCreate(
        name="Aspirin",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 3),
        times=[{"hour": 9, "minute": 0}, {"hour": 21, "minute": 0}],
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import get_db
from app.models import Base, Vehicle
from app.models.enums import VehicleStatus
from app.services.gateway import PersistenceGateway
from app.services.workflow import DisposalWorkflow

START = date(2025, 3, 3)


def request_fields(vehicle_id: int, **overrides) -> dict:
    fields = {
        "vehicle_id": vehicle_id,
        "disposal_reason": "end_of_life",
        "recommended_method": "auction",
        "condition_rating": "fair",
        "current_mileage": 120000,
        "estimated_value": 50000,
        "requested_by": "Fleet Manager",
    }
    fields.update(overrides)
    return fields


def auction_fields(days: int = 8, starting_price: float = 35000, reserve_price: float | None = 42500, **overrides) -> dict:
    fields = {
        "auction_type": "public",
        "starting_price": starting_price,
        "reserve_price": reserve_price,
        "start_date": START,
        "end_date": START + timedelta(days=days),
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def engine():
    # One shared in-memory database per test
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway(db):
    return PersistenceGateway(db)


class RecordedEvents(list):
    """Event subscriber that keeps what it receives."""

    def __call__(self, event):
        self.append(event)


@pytest.fixture
def events():
    return RecordedEvents()


@pytest.fixture
def workflow(gateway, events):
    workflow = DisposalWorkflow(gateway)
    workflow.events.subscribe(events)
    return workflow


@pytest.fixture
def make_vehicle(gateway):
    counter = {"n": 0}

    def _make(status: VehicleStatus = VehicleStatus.ACTIVE) -> Vehicle:
        counter["n"] += 1
        return gateway.vehicles.create(Vehicle(
            registration_number=f"GT-{1000 + counter['n']}-25",
            make="Toyota",
            model="Land Cruiser",
            status=status,
        ))

    return _make


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle()


@pytest.fixture
def pending_request(workflow, vehicle):
    return workflow.create_request(request_fields(vehicle.id))


@pytest.fixture
def listed_request(workflow, pending_request):
    return workflow.approve_request(pending_request.id, "admin-1")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

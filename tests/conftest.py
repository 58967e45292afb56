import os

# must be set before anything imports shared.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CRON_SECRET"] = "cron-secret"
os.environ["ADMIN_USER_ID"] = "admin-1"
os.environ.pop("SMTP_HOST", None)

import uuid
from datetime import date

import pytest
from fastapi.testclient import TestClient

from shared.core.auth import create_access_token
from shared.core.database import Base, RentalSessionLocal, rental_engine, transaction
from rental_service.app import models  # noqa: F401  registers every table on Base
from rental_service.app.enum.rental_enum import (
    ContractStatus, DriverVerificationStatus, FeeFrequency, VehicleStatus
)
from rental_service.app.models.drivers import Driver
from rental_service.app.models.rental_contracts import RentalContract
from rental_service.app.models.vehicles import Vehicle

THURSDAY = date(2025, 1, 2)
MONDAY = 1  # 0=Sunday


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=rental_engine)
    yield
    Base.metadata.drop_all(bind=rental_engine)


@pytest.fixture
def db(tables):
    session = RentalSessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_driver(db):
    def _make(status=DriverVerificationStatus.VERIFIED, full_name="Sipho Dlamini",
              email="driver@example.com", user_id=None):
        driver = Driver(
            full_name=full_name,
            email=email,
            user_id=user_id or uuid.uuid4(),
            verification_status=status.value,
        )
        with transaction(db):
            db.add(driver)
            db.flush()
        return driver
    return _make


@pytest.fixture
def make_vehicle(db):
    counter = iter(range(1, 1000))

    def _make(status=VehicleStatus.AVAILABLE, reg=None):
        vehicle = Vehicle(
            reg=reg or f"CA{next(counter):06d}",
            make="Toyota",
            model="Corolla",
            year=2021,
            status=status.value,
        )
        with transaction(db):
            db.add(vehicle)
            db.flush()
        return vehicle
    return _make


@pytest.fixture
def make_contract(db, make_driver, make_vehicle):
    """Inserts a contract row directly in any state, bypassing the lifecycle."""
    def _make(status=ContractStatus.ACTIVE, frequency=FeeFrequency.WEEKLY,
              due_weekday=MONDAY, due_day_of_month=None, start_date=THURSDAY,
              end_date=None, fee_amount_cents=150000, driver=None, vehicle=None):
        driver = driver or make_driver()
        vehicle = vehicle or make_vehicle(status=VehicleStatus.ASSIGNED)
        contract = RentalContract(
            driver_id=driver.id,
            vehicle_id=vehicle.id,
            fee_amount_cents=fee_amount_cents,
            frequency=frequency.value,
            due_weekday=due_weekday,
            due_day_of_month=due_day_of_month,
            start_date=start_date,
            end_date=end_date,
            status=status.value,
            terms_text="Standard rental terms",
        )
        with transaction(db):
            db.add(contract)
            db.flush()
        return contract
    return _make


def auth_headers(role: str, user_id: str = None, **claims) -> dict:
    payload = {"user_id": user_id or str(uuid.uuid4()), "role": role}
    payload.update({k: str(v) for k, v in claims.items()})
    return {"Authorization": f"Bearer {create_access_token(payload)}"}


@pytest.fixture
def admin_headers():
    return auth_headers("admin", user_id="admin-1")


@pytest.fixture
def client(tables):
    from rental_service.app.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers_for():
    return auth_headers

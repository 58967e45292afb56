import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from shared.core.database import transaction
from shared.core.exceptions import InvalidStateError, NotFoundError
from rental_service.app.crud.fleet import drivers_crud, vehicle_costs_crud, vehicle_maintenance_crud
from rental_service.app.crud.overview import dashboard_crud
from rental_service.app.enum.rental_enum import (
    DashboardRange, DriverVerificationStatus, MaintenanceStatus, PaymentStatus, VehicleCostType,
    VehicleStatus
)
from rental_service.app.models.payments import Payment
from rental_service.app.models.vehicle_costs import VehicleCost
from rental_service.app.schemas.drivers_schemas import DriverProfileUpdate
from rental_service.app.schemas.vehicle_costs_schemas import VehicleCostCreate, VehicleCostRequest
from rental_service.app.schemas.vehicle_maintenance_schemas import (
    MaintenanceCreate, MaintenanceRequest, MaintenanceUpdate
)

TODAY = date(2025, 3, 1)


def plan(db, vehicle, title="Major service", **fields):
    return vehicle_maintenance_crud.create(db, vehicle.id, MaintenanceCreate(title=title, **fields))


def costs_of(db, vehicle):
    db.expire_all()
    return db.query(VehicleCost).filter(VehicleCost.vehicle_id == vehicle.id).all()


def test_maintenance_starts_planned_and_lists_by_vehicle(db, make_vehicle):
    vehicle, other = make_vehicle(), make_vehicle()
    plan(db, vehicle, scheduled_at=date(2025, 4, 1), odometer_km=90000, estimated_cost_cents=250000)
    plan(db, other)

    listed = vehicle_maintenance_crud.get_list(db, vehicle.id, MaintenanceRequest())

    assert listed.total == 1
    job = listed.maintenance[0]
    assert job.status == MaintenanceStatus.PLANNED
    assert job.vehicle_reg == vehicle.reg
    assert job.estimated_cost_cents == 250000


def test_completing_with_actual_cost_books_one_service_cost(db, make_vehicle):
    vehicle = make_vehicle()
    job = plan(db, vehicle)

    vehicle_maintenance_crud.update(
        db, vehicle.id, job.id, MaintenanceUpdate(status=MaintenanceStatus.IN_PROGRESS))
    vehicle_maintenance_crud.update(
        db, vehicle.id, job.id,
        MaintenanceUpdate(status=MaintenanceStatus.COMPLETED, actual_cost_cents=231500,
                          completed_at=date(2025, 3, 4)))

    costs = costs_of(db, vehicle)
    assert [(c.type, c.amount_cents, c.occurred_at, c.maintenance_id) for c in costs] == [
        (VehicleCostType.SERVICE.value, 231500, date(2025, 3, 4), job.id),
    ]

    with pytest.raises(InvalidStateError, match="maintenance must be IN_PROGRESS or PLANNED, was COMPLETED"):
        vehicle_maintenance_crud.update(
            db, vehicle.id, job.id, MaintenanceUpdate(actual_cost_cents=1))
    assert len(costs_of(db, vehicle)) == 1


def test_completing_without_cost_books_nothing(db, make_vehicle):
    vehicle = make_vehicle()
    job = plan(db, vehicle)

    done = vehicle_maintenance_crud.update(
        db, vehicle.id, job.id, MaintenanceUpdate(status=MaintenanceStatus.COMPLETED))

    assert done.completed_at == date.today()
    assert costs_of(db, vehicle) == []


def test_maintenance_of_another_vehicle_not_found(db, make_vehicle):
    job = plan(db, make_vehicle())

    with pytest.raises(NotFoundError):
        vehicle_maintenance_crud.update(
            db, make_vehicle().id, job.id, MaintenanceUpdate(status=MaintenanceStatus.CANCELLED))


def test_costs_default_to_today_and_total_by_filter(db, make_vehicle):
    vehicle = make_vehicle()
    licence = vehicle_costs_crud.create(db, vehicle.id, VehicleCostCreate(
        type=VehicleCostType.LICENSE, amount_cents=45000, title="Licence disc"))
    vehicle_costs_crud.create(db, vehicle.id, VehicleCostCreate(
        type=VehicleCostType.TYRES, amount_cents=320000, vendor="Tyre City",
        occurred_at=date(2025, 1, 20)))

    assert licence.occurred_at == date.today()

    everything = vehicle_costs_crud.get_list(db, vehicle.id, VehicleCostRequest())
    assert everything.total == 2
    assert everything.total_cents == 365000

    tyres = vehicle_costs_crud.get_list(db, vehicle.id, VehicleCostRequest(type="tyres"))
    assert [c.vendor for c in tyres.costs] == ["Tyre City"]
    assert tyres.total_cents == 320000


def test_costs_for_unknown_vehicle_not_found(db, make_vehicle):
    make_vehicle()
    with pytest.raises(NotFoundError):
        vehicle_costs_crud.get_list(db, uuid.uuid4(), VehicleCostRequest())


def test_driver_profile_update_keeps_name_when_blank(db, make_driver):
    driver = make_driver(full_name="Sipho Dlamini")

    drivers_crud.update_profile(db, driver.id, DriverProfileUpdate(
        full_name="", phone="+27 82 111 2222", city="Durban", postal_code="4001"))

    db.expire_all()
    assert driver.full_name == "Sipho Dlamini"
    assert (driver.phone, driver.city, driver.postal_code) == ("+27 82 111 2222", "Durban", "4001")


def add_payment(db, contract, due_date, status, paid=False):
    payment = Payment(
        contract_id=contract.id,
        amount_cents=contract.fee_amount_cents,
        due_date=due_date,
        status=status.value,
        paid_at=datetime(2025, 1, 6, 9, tzinfo=timezone.utc) if paid else None,
    )
    with transaction(db):
        db.add(payment)
    return payment


@pytest.fixture
def busy_fleet(db, make_contract, make_driver, make_vehicle):
    contract = make_contract()
    add_payment(db, contract, date(2025, 1, 6), PaymentStatus.PAID, paid=True)
    add_payment(db, contract, date(2025, 1, 13), PaymentStatus.OVERDUE)
    add_payment(db, contract, date(2025, 2, 24), PaymentStatus.PENDING)  # late, not yet swept
    add_payment(db, contract, date(2025, 3, 3), PaymentStatus.PENDING)

    spare = make_vehicle()
    make_vehicle(status=VehicleStatus.MAINTENANCE)
    make_driver(status=DriverVerificationStatus.PENDING_REVIEW)

    plan(db, contract.vehicle, title="Brake pads", scheduled_at=TODAY + timedelta(days=3))
    plan(db, spare, title="Annual service", scheduled_at=TODAY + timedelta(days=30))

    vehicle_costs_crud.create(db, contract.vehicle_id, VehicleCostCreate(
        type=VehicleCostType.REPAIR, amount_cents=50000, occurred_at=date(2025, 2, 25)))
    vehicle_costs_crud.create(db, spare.id, VehicleCostCreate(
        type=VehicleCostType.INSURANCE, amount_cents=20000, occurred_at=date(2025, 1, 1)))
    return contract


def test_dashboard_all_time(db, busy_fleet):
    dashboard = dashboard_crud.get_admin_dashboard(db, DashboardRange.ALL, today=TODAY)

    kpis = dashboard.kpis
    assert kpis.revenue_cents == 150000
    assert (kpis.pending_count, kpis.pending_cents) == (1, 150000)
    assert (kpis.overdue_count, kpis.overdue_cents) == (2, 300000)
    assert kpis.oldest_overdue_days == 47
    assert kpis.active_contracts == 1
    assert kpis.last_payment_at is not None

    assert (dashboard.fleet.total, dashboard.fleet.assigned,
            dashboard.fleet.available, dashboard.fleet.maintenance) == (3, 1, 1, 1)
    assert (dashboard.drivers.total, dashboard.drivers.verified,
            dashboard.drivers.pending_review) == (2, 1, 1)

    assert dashboard.action_required.overdue_payments == 2
    assert dashboard.action_required.pending_verifications == 1
    assert dashboard.action_required.maintenance_due == 1

    assert [p.due_date for p in dashboard.recent_payments] == [date(2025, 1, 6)]
    assert dashboard.recent_payments[0].driver_name == "Sipho Dlamini"
    assert [c.total_cost_cents for c in dashboard.vehicle_costs] == [50000, 20000]
    assert [j.title for j in dashboard.upcoming_maintenance] == ["Brake pads", "Annual service"]
    assert dashboard.currency == "ZAR"


def test_dashboard_last_week(db, busy_fleet):
    dashboard = dashboard_crud.get_admin_dashboard(db, DashboardRange.WEEK, today=TODAY)

    assert dashboard.kpis.revenue_cents == 0
    assert (dashboard.kpis.overdue_count, dashboard.kpis.oldest_overdue_days) == (1, 5)
    assert dashboard.kpis.pending_count == 1
    assert [c.total_cost_cents for c in dashboard.vehicle_costs] == [50000]

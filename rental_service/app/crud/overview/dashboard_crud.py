from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, joinedload

from ...enum.rental_enum import (
    ContractStatus, DashboardRange, DriverVerificationStatus, PaymentStatus, VehicleStatus
)
from ...models.drivers import Driver
from ...models.payments import Payment
from ...models.rental_contracts import RentalContract
from ...models.vehicle_costs import VehicleCost
from ...models.vehicle_maintenance import VehicleMaintenance
from ...models.vehicles import Vehicle
from ...schemas.dashboard_schemas import (
    ActionRequired, AdminDashboard, DashboardKpis, DriverSummary, FleetSummary, VehicleCostTotal
)
from ..fleet import vehicle_maintenance_crud
from ..payments import payments_crud
from ..system import settings_crud

RECENT_LIMIT = 5
MAINTENANCE_DUE_DAYS = 7


def range_start(period: DashboardRange, today: date) -> Optional[date]:
    if period == DashboardRange.WEEK:
        return today - timedelta(days=7)
    if period == DashboardRange.MONTH:
        return today - relativedelta(months=1)
    return None


def _count_by(db: Session, column) -> dict:
    return dict(db.query(column, func.count()).group_by(column).all())


def _payment_kpis(db: Session, start: Optional[date], today: date) -> DashboardKpis:
    window = [Payment.due_date >= start] if start else []
    late = or_(
        Payment.status == PaymentStatus.OVERDUE.value,
        and_(Payment.status == PaymentStatus.PENDING.value, Payment.due_date < today),
    )

    def totals(*filters):
        count, cents = (
            db.query(func.count(Payment.id), func.coalesce(func.sum(Payment.amount_cents), 0))
            .filter(*window, *filters)
            .one()
        )
        return count, int(cents)

    _, revenue = totals(Payment.status == PaymentStatus.PAID.value)
    pending_count, pending = totals(
        Payment.status == PaymentStatus.PENDING.value, Payment.due_date >= today)
    overdue_count, overdue = totals(late)

    oldest_due = db.query(func.min(Payment.due_date)).filter(*window, late).scalar()
    last_paid = (
        db.query(func.max(Payment.paid_at))
        .filter(Payment.status == PaymentStatus.PAID.value)
        .scalar()
    )
    active = (
        db.query(func.count(RentalContract.id))
        .filter(RentalContract.status == ContractStatus.ACTIVE.value)
        .scalar()
    )

    return DashboardKpis(
        revenue_cents=revenue,
        pending_cents=pending,
        pending_count=pending_count,
        overdue_cents=overdue,
        overdue_count=overdue_count,
        oldest_overdue_days=(today - oldest_due).days if oldest_due else None,
        active_contracts=active,
        last_payment_at=last_paid,
    )


def _fleet(db: Session) -> FleetSummary:
    counts = _count_by(db, Vehicle.status)
    return FleetSummary(
        total=sum(counts.values()),
        available=counts.get(VehicleStatus.AVAILABLE.value, 0),
        assigned=counts.get(VehicleStatus.ASSIGNED.value, 0),
        maintenance=counts.get(VehicleStatus.MAINTENANCE.value, 0),
        inactive=counts.get(VehicleStatus.INACTIVE.value, 0),
    )


def _drivers(db: Session) -> DriverSummary:
    counts = _count_by(db, Driver.verification_status)
    return DriverSummary(
        total=sum(counts.values()),
        verified=counts.get(DriverVerificationStatus.VERIFIED.value, 0),
        pending_review=counts.get(DriverVerificationStatus.PENDING_REVIEW.value, 0),
        unverified=counts.get(DriverVerificationStatus.UNVERIFIED.value, 0),
        rejected=counts.get(DriverVerificationStatus.REJECTED.value, 0),
    )


def _vehicle_costs(db: Session, start: Optional[date]):
    total = func.sum(VehicleCost.amount_cents)
    q = (
        db.query(Vehicle.id, Vehicle.reg, total)
        .join(VehicleCost, VehicleCost.vehicle_id == Vehicle.id)
    )
    if start:
        q = q.filter(VehicleCost.occurred_at >= start)
    rows = q.group_by(Vehicle.id, Vehicle.reg).order_by(total.desc()).limit(RECENT_LIMIT).all()
    return [
        VehicleCostTotal(vehicle_id=vehicle_id, vehicle_reg=reg, total_cost_cents=int(cents))
        for vehicle_id, reg, cents in rows
    ]


def get_admin_dashboard(db: Session, period: DashboardRange = DashboardRange.ALL,
                        today: Optional[date] = None) -> AdminDashboard:
    today = today or date.today()
    start = range_start(period, today)

    kpis = _payment_kpis(db, start, today)
    drivers = _drivers(db)

    open_jobs = db.query(VehicleMaintenance).filter(
        VehicleMaintenance.status.in_(vehicle_maintenance_crud.OPEN_STATUSES),
        VehicleMaintenance.scheduled_at.isnot(None),
    )
    maintenance_due = open_jobs.filter(
        VehicleMaintenance.scheduled_at <= today + timedelta(days=MAINTENANCE_DUE_DAYS)
    ).count()
    upcoming = (
        open_jobs.options(joinedload(VehicleMaintenance.vehicle))
        .order_by(VehicleMaintenance.scheduled_at)
        .limit(RECENT_LIMIT)
        .all()
    )

    recent = (
        db.query(Payment)
        .options(joinedload(Payment.contract))
        .filter(Payment.status == PaymentStatus.PAID.value)
        .order_by(Payment.paid_at.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    return AdminDashboard(
        range=period,
        currency=settings_crud.get_setting(db, settings_crud.CURRENCY, "ZAR"),
        kpis=kpis,
        fleet=_fleet(db),
        drivers=drivers,
        action_required=ActionRequired(
            overdue_payments=kpis.overdue_count,
            pending_verifications=drivers.pending_review,
            maintenance_due=maintenance_due,
        ),
        recent_payments=[payments_crud.to_out(p) for p in recent],
        vehicle_costs=_vehicle_costs(db, start),
        upcoming_maintenance=[vehicle_maintenance_crud.to_out(job) for job in upcoming],
    )

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from ..enum.rental_enum import DashboardRange
from .payments_schemas import PaymentOut
from .vehicle_maintenance_schemas import MaintenanceOut


class DashboardKpis(BaseModel):
    revenue_cents: int
    pending_cents: int
    pending_count: int
    overdue_cents: int
    overdue_count: int
    oldest_overdue_days: Optional[int] = None
    active_contracts: int
    last_payment_at: Optional[datetime] = None


class FleetSummary(BaseModel):
    total: int
    available: int
    assigned: int
    maintenance: int
    inactive: int


class DriverSummary(BaseModel):
    total: int
    verified: int
    pending_review: int
    unverified: int
    rejected: int


class ActionRequired(BaseModel):
    overdue_payments: int
    pending_verifications: int
    maintenance_due: int


class VehicleCostTotal(BaseModel):
    vehicle_id: UUID
    vehicle_reg: str
    total_cost_cents: int


class AdminDashboard(BaseModel):
    range: DashboardRange
    currency: str
    kpis: DashboardKpis
    fleet: FleetSummary
    drivers: DriverSummary
    action_required: ActionRequired
    recent_payments: List[PaymentOut]
    vehicle_costs: List[VehicleCostTotal]
    upcoming_maintenance: List[MaintenanceOut]

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin
from shared.core.database import get_rental_db as get_db
from ..crud.overview import dashboard_crud
from ..enum.rental_enum import DashboardRange
from ..schemas.dashboard_schemas import AdminDashboard

router = APIRouter(prefix="/api/dashboard",
                   tags=["Dashboard"], dependencies=[Depends(allow_admin)])


@router.get("/overview", response_model=AdminDashboard)
def get_overview(
    period: DashboardRange = Query(DashboardRange.ALL, alias="range"),
    db: Session = Depends(get_db),
):
    return dashboard_crud.get_admin_dashboard(db, period)

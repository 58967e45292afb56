from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_cron_or_admin
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import UserToken
from ..crud.scheduler import scheduler_service
from ..crud.system.notifier import Notifier
from ..schemas.payments_schemas import BackfillResult, OverdueSweepResult

# Triggered by an external cron (x-api-key) or by an admin from the dashboard
router = APIRouter(
    prefix="/api/jobs",
    tags=["jobs"],
)


@router.api_route("/payments/generate", methods=["GET", "POST"], response_model=BackfillResult)
def generate_payments(
    db: Session = Depends(get_db),
    caller: Optional[UserToken] = Depends(allow_cron_or_admin)
):
    return scheduler_service.generate_upcoming_payments(db)


@router.api_route("/payments/update-overdue", methods=["GET", "POST"], response_model=OverdueSweepResult)
def update_overdue_payments(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    caller: Optional[UserToken] = Depends(allow_cron_or_admin)
):
    return scheduler_service.mark_overdue_payments(db, notifier=Notifier(db, background_tasks))

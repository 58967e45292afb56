from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin
from shared.core.database import get_rental_db as get_db
from ..crud.system import settings_crud as crud
from ..schemas.settings_schemas import PaymentSettingsOut, PaymentSettingsUpdate

router = APIRouter(
    prefix="/api/settings",
    tags=["settings"],
    dependencies=[Depends(allow_admin)]
)


@router.get("/payments", response_model=PaymentSettingsOut)
def get_payment_settings(db: Session = Depends(get_db)):
    return crud.get_payment_settings(db)


@router.put("/payments", response_model=PaymentSettingsOut)
def update_payment_settings(
    payload: PaymentSettingsUpdate,
    db: Session = Depends(get_db),
):
    return crud.update_payment_settings(db, payload)

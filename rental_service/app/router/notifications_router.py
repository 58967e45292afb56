from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import CommonQueryParams, UserToken
from shared.helpers.json_response_helper import success_response
from ..crud.system import notifications_crud as crud
from ..schemas.notifications_schemas import NotificationListResponse


router = APIRouter(prefix="/api/notifications",
                   tags=["notifications"], dependencies=[Depends(validate_current_token)])


@router.get("/all", response_model=NotificationListResponse)
def get_all_notifications(
    params: CommonQueryParams = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_all_notifications(db, current_user.user_id, params)


@router.post("/mark-all-read")
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    updated = crud.mark_all_read(db, current_user.user_id)
    return success_response({"updated": updated}, message=f"{updated} notification(s) marked as read")

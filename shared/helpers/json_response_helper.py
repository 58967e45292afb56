from typing import Any, Dict, Optional

from fastapi import HTTPException

from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import JsonOutResult


def success_response(data: Any, message: str = "Success",
                     status_code: str = AppStatusCode.OPERATION_SUCCESSFUL) -> JsonOutResult:
    """Envelope built by the handler itself, passed through untouched by the middleware."""
    return JsonOutResult(data=data, status="Success", status_code=status_code, message=message)


def error_response(message: str, status_code: str = AppStatusCode.OPERATION_FAILED,
                   http_status: int = 400, headers: Optional[Dict[str, str]] = None):
    raise HTTPException(
        status_code=http_status,
        detail=JsonOutResult(
            data=None,
            status="Failed",
            status_code=status_code,
            message=message
        ).model_dump(),
        headers=headers,
    )

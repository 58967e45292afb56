from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import JSONResponse
from fastapi import Request
from shared.core.schemas import JsonOutResult
from typing import Callable
import json

ENVELOPE_KEYS = {"status", "status_code", "message"}


class JsonResponseMiddleware(BaseHTTPMiddleware):
    """Wraps every JSON response in the JsonOutResult envelope."""

    async def dispatch(self, request: Request, call_next: Callable):
        # Skip docs/openapi endpoints
        if request.url.path.startswith(("/openapi", "/docs", "/redoc")):
            return await call_next(request)

        response = await call_next(request)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response

        # Read the full body
        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        try:
            data = json.loads(body_bytes.decode("utf-8")) if body_bytes else None
        except ValueError:
            data = None

        headers = {k: v for k, v in response.headers.items()
                   if k.lower() != "content-length"}

        # Error responses (4xx/5xx)
        if not (200 <= response.status_code < 400):
            message = "An unexpected error occurred"
            internal_status_code = str(response.status_code)

            if isinstance(data, dict):
                detail = data.get("detail")
                if isinstance(detail, dict):
                    message = detail.get("message") or message
                    internal_status_code = str(
                        detail.get("status_code") or internal_status_code)
                elif detail:
                    message = str(detail)
                elif data.get("message"):
                    message = data["message"]
                    internal_status_code = str(
                        data.get("status_code") or internal_status_code)

            wrapped_error = JsonOutResult(
                data=None,
                status="Failed",
                status_code=internal_status_code,
                message=message,
            ).model_dump()

            return JSONResponse(
                content=wrapped_error,
                status_code=response.status_code,
                headers=headers,
            )

        # Skip wrapping if already wrapped
        if isinstance(data, dict) and ENVELOPE_KEYS.issubset(data.keys()):
            return JSONResponse(content=data, status_code=response.status_code, headers=headers)

        wrapped = JsonOutResult(
            data=data,
            status="Success",
            status_code=str(response.status_code),
            message="Data retrieved successfully"
        ).model_dump()

        return JSONResponse(
            content=wrapped,
            status_code=response.status_code,
            headers=headers,
        )

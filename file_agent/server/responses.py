from __future__ import annotations

from typing import Mapping, Optional

from fastapi.responses import JSONResponse

from .schemas import FileResponse


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def error_response(message: str, status_code: int, headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
    payload = FileResponse(success=False, error_message=message).to_payload()
    return JSONResponse(status_code=status_code, content=payload, headers=dict(headers) if headers else None)

from __future__ import annotations

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from agent_core.filesystem.errors import UploadError
from agent_core.filesystem.uploads import UploadGatekeeper

from ..schemas import FileResponse


router = APIRouter(tags=["files"])


def _gatekeeper(request: Request) -> UploadGatekeeper:
    return request.app.state.gatekeeper


@router.post("/upload", response_model=FileResponse, response_model_exclude_none=True)
def upload_file(
    request: Request,
    file: UploadFile = File(...),
    open_now: str | None = Form(default=None, alias="openNow"),
) -> FileResponse:
    try:
        stored = _gatekeeper(request).accept_upload(
            file.file,
            file.filename or "",
            open_now=open_now == "true",
        )
    except UploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return FileResponse(success=True, file_path=str(stored.path))


@router.get("/open/{filename:path}", response_model=FileResponse, response_model_exclude_none=True)
def open_file(request: Request, filename: str) -> FileResponse:
    try:
        resolved = _gatekeeper(request).lookup_and_open(filename)
    except UploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return FileResponse(success=True, file_path=str(resolved))

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class FileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    file_path: str | None = Field(default=None, alias="filePath")
    error_message: str | None = Field(default=None, alias="errorMessage")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

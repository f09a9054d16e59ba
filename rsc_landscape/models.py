from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Coord = tuple[int, int, int]
JobStatus = Literal["queued", "running", "succeeded", "failed"]


class ConvertRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    archive: str = Field(min_length=1, max_length=255)
    mode: Literal["region", "chunk", "full"]
    at: Optional[Coord] = None
    corner_a: Optional[Coord] = None
    corner_b: Optional[Coord] = None
    clean: bool = False

    @field_validator("archive")
    @classmethod
    def validate_archive(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError("Archive must be a file name inside the archive directory")
        return value

    @model_validator(mode="after")
    def validate_selection(self) -> "ConvertRequest":
        if self.mode == "chunk" and self.at is None:
            raise ValueError("chunk mode needs 'at'")
        if self.mode == "region" and (self.corner_a is None or self.corner_b is None):
            raise ValueError("region mode needs 'corner_a' and 'corner_b'")
        return self


class JobResponse(BaseModel):
    job_id: str
    status: JobStatus
    output: str
    first_sector: str
    last_sector: str


class ConversionJobResponse(BaseModel):
    id: str
    archive: str
    mode: str
    first_sector: str
    last_sector: str
    clean: bool
    output: str
    status: JobStatus
    queued_at: Optional[str]
    started_at: Optional[str]
    finished_at: Optional[str]
    built: int
    skipped: int
    malformed: int
    placed: int
    problems: list[str]
    error: Optional[str]


class JobListResponse(BaseModel):
    jobs: list[ConversionJobResponse]


class SectorListResponse(BaseModel):
    archive: str
    sectors: list[str]

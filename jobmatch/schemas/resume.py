# jobmatch/schemas/resume.py
from datetime import datetime

from pydantic import BaseModel, Field


class ResumeIn(BaseModel):
    text: str = Field(min_length=1)
    filename: str | None = None
    email: str | None = None


class ResumeOut(BaseModel):
    id: int
    tenant_id: str
    filename: str | None
    extracted_skills: list[str]
    education: list[str]
    experience_years: float
    experience_source: str | None
    contact_email: str | None
    source_ip: str | None
    created_at: datetime | None

    class Config:
        from_attributes = True


class StoreResult(BaseModel):
    resume: ResumeOut
    cache: str  # 'full' | 'partial' | 'miss'


class UploadStats(BaseModel):
    total_uploads: int
    unique_emails: int
    unique_ips: int
    with_email: int
    with_ip: int
    by_date: dict[str, int] = Field(default_factory=dict)

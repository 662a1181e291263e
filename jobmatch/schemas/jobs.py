# jobmatch/schemas/jobs.py
import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

_FIRST_NUMBER = re.compile(r"\d+(?:\.\d+)?")


class JobRecord(BaseModel):
    """One job as handed over by the external catalog. Only its vector is kept."""
    id: str | None = None
    title: str | None = None
    company: str | None = None
    description: str | None = None
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_years: float | None = None
    location: str | None = None
    salary_range: str | None = None
    employment_type: str | None = None
    text: str | None = None  # pre-built canonical text, if the catalog has one

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        # catalogs send numeric ids; the index keys on strings
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("title", "company", "description", "location", "salary_range",
                     "employment_type", "text", mode="before")
    @classmethod
    def _scalar_as_str(cls, v):
        # salary 50000, location 10115 and the like
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def _skill_list(cls, v):
        if not v:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @field_validator("experience_years", mode="before")
    @classmethod
    def _years(cls, v):
        # "3-5" -> 3.0, "5+ years" -> 5.0, anything unreadable -> None
        if v is None or isinstance(v, (int, float)):
            return v
        m = _FIRST_NUMBER.search(str(v))
        return float(m.group(0)) if m else None

    @property
    def has_content(self) -> bool:
        return any((x or "").strip() for x in (self.title, self.description, self.text))


class JobSyncIn(BaseModel):
    # raw records: each one is validated on its own during sync
    jobs: list[Any] = Field(default_factory=list)


class SyncResult(BaseModel):
    total: int = 0
    processed: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0

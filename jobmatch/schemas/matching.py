# jobmatch/schemas/matching.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RelatedMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    candidate_skill: str = Field(alias="candidateSkill")
    job_skill: str = Field(alias="jobSkill")
    reasoning: str = ""


class SkillOverlap(BaseModel):
    """Skill-overlap verdict. Field aliases are the keys the chat model answers with."""
    model_config = ConfigDict(populate_by_name=True)

    direct_matches: list[str] = Field(default_factory=list, alias="directMatches")
    related_matches: list[RelatedMatch] = Field(default_factory=list, alias="relatedMatches")
    missing_skills: list[str] = Field(default_factory=list, alias="missingSkills")
    match_score: float = Field(default=0.0, alias="matchScore", ge=0, le=100)
    reasoning: str = ""
    fallback: bool = False  # True when computed locally instead of by the model

    @property
    def matched_skills(self) -> list[str]:
        return self.direct_matches + [r.candidate_skill for r in self.related_matches]


class Match(BaseModel):
    external_job_id: str
    combined_score: float
    similarity: float
    skill_match_score: float | None = None
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    related_matches: list[RelatedMatch] = Field(default_factory=list)
    reasoning: str | None = None
    cached: bool = False
    created_at: datetime | None = None


class MatchRequest(BaseModel):
    limit: int | None = Field(default=None, ge=1, le=200)
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    # external_job_id -> required skills, for skill-overlap scoring
    required_skills: dict[str, list[str]] | None = None

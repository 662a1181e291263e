# jobmatch/nlp/embeddings.py
import logging
from typing import Sequence

import numpy as np
from pydantic import ValidationError

from jobmatch.core.errors import ProviderError
from jobmatch.nlp.llm_json import extract_json_object
from jobmatch.nlp.providers import EmbeddingProvider
from jobmatch.nlp.vectors import as_vector
from jobmatch.schemas.jobs import JobRecord
from jobmatch.schemas.matching import SkillOverlap

log = logging.getLogger(__name__)

FALLBACK_REASONING = "Basic skill matching applied"

_SKILL_PROMPT = """Analyze skill match between candidate and job.

Candidate: {candidate}
Required: {required}

Return JSON only:
{{
  "directMatches": ["exact matches"],
  "relatedMatches": [{{"candidateSkill": "X", "jobSkill": "Y", "reasoning": "brief"}}],
  "missingSkills": ["missing"],
  "matchScore": 0-100,
  "reasoning": "1 sentence"
}}"""


def _fmt_years(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else f"{v:g}"


def build_job_text(job: JobRecord) -> str:
    """Labeled multi-line text for a job; same fields in, same text out."""
    if job.text and job.text.strip() and not (job.title or job.description):
        return job.text.strip()
    lines = [
        f"Job Title: {job.title or ''}",
        f"Company: {job.company or ''}",
        f"Description: {job.description or ''}",
        f"Required Skills: {', '.join(job.required_skills)}",
    ]
    if job.preferred_skills:
        lines.append(f"Preferred Skills: {', '.join(job.preferred_skills)}")
    if job.experience_years:
        lines.append(f"Experience Required: {_fmt_years(job.experience_years)} years")
    if job.location:
        lines.append(f"Location: {job.location}")
    if job.employment_type:
        lines.append(f"Employment Type: {job.employment_type}")
    return "\n".join(lines)


def build_resume_text(text: str, skills: Sequence[str] = (), experience_years: float = 0.0,
                      education: Sequence[str] = ()) -> str:
    lines = [text]
    if skills:
        lines.append(f"\nKey Technical Skills: {', '.join(skills)}")
    if experience_years and experience_years > 0:
        lines.append(f"Total Experience: {_fmt_years(experience_years)} years")
    if education:
        lines.append(f"Education: {', '.join(education)}")
    return "\n".join(lines)


def exact_skill_overlap(candidate_skills: Sequence[str], required_skills: Sequence[str]) -> SkillOverlap:
    """Case-insensitive exact matching; score is the share of required skills covered."""
    required_lc = {r.lower() for r in required_skills}
    direct = [c for c in candidate_skills if c.lower() in required_lc]
    direct_lc = {d.lower() for d in direct}
    missing = [r for r in required_skills if r.lower() not in direct_lc]
    score = 100.0 * len(direct) / len(required_skills) if required_skills else 0.0
    return SkillOverlap(
        direct_matches=direct,
        related_matches=[],
        missing_skills=missing,
        match_score=min(score, 100.0),
        reasoning=FALLBACK_REASONING,
        fallback=True,
    )


class EmbeddingGateway:
    """Canonical texts in, fixed-length vectors and skill verdicts out."""

    def __init__(self, provider: EmbeddingProvider):
        self.provider = provider

    build_job_text = staticmethod(build_job_text)
    build_resume_text = staticmethod(build_resume_text)

    @property
    def dim(self) -> int:
        return self.provider.dim

    def embed(self, text: str) -> np.ndarray:
        return as_vector(self.provider.embed(text), self.dim)

    def embed_batch(self, texts: Sequence[str]) -> list[np.ndarray]:
        """
        One provider call for all `texts`. The result may be shorter or longer
        than the input when the provider misbehaves; callers check the count.
        """
        raw = self.provider.embed_batch(list(texts))
        return [as_vector(v, self.dim) for v in raw]

    def analyze_skill_overlap(self, candidate_skills: Sequence[str], required_skills: Sequence[str]) -> SkillOverlap:
        candidate_skills = list(candidate_skills or [])
        required_skills = list(required_skills or [])
        if not required_skills:
            # nothing to judge against
            return exact_skill_overlap(candidate_skills, required_skills)

        prompt = _SKILL_PROMPT.format(
            candidate=", ".join(candidate_skills),
            required=", ".join(required_skills),
        )
        try:
            data = extract_json_object(self.provider.chat_json(prompt))
            return SkillOverlap.model_validate(data)
        except (ProviderError, ValueError, ValidationError) as e:
            log.warning("skill overlap fell back to exact matching: %s", e)
            return exact_skill_overlap(candidate_skills, required_skills)

# jobmatch/services/matching.py
import logging
from typing import Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from jobmatch.core.errors import ResumeNotFoundError
from jobmatch.db.models import JobEmbedding, JobMatch, Resume, utcnow
from jobmatch.db.upsert import upsert_row
from jobmatch.nlp.embeddings import EmbeddingGateway
from jobmatch.nlp.vectors import cosine_similarity, from_blob
from jobmatch.schemas.matching import Match, RelatedMatch
from jobmatch.services.job_index import JobEmbeddingIndex

log = logging.getLogger(__name__)

LIGHTWEIGHT_REASONING = "Similarity only; skills were not compared"


def _r3(x: float) -> float:
    return round(float(x), 3)


class MatchingEngine:
    """
    Ranks a tenant's indexed jobs against one resume.

    combined = w_sim * similarity + w_skill * skill_score / 100
    (combined = similarity when enrichment is off). Results are persisted and
    served from the stored rows on the next call for the same resume.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        gateway: EmbeddingGateway,
        index: JobEmbeddingIndex,
        enrich: bool = True,
        similarity_weight: float = 0.7,
        skill_weight: float = 0.3,
        default_limit: int = 10,
        default_threshold: float = 0.5,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.index = index
        self.enrich = enrich
        self.similarity_weight = similarity_weight
        self.skill_weight = skill_weight
        self.default_limit = default_limit
        self.default_threshold = default_threshold

    # ---------- cache ----------
    def _stored_rows(self, s: Session, resume_id: int, tenant_id: str) -> list[JobMatch]:
        # rows for jobs pruned since they were computed are left out
        live = select(JobEmbedding.external_job_id).where(JobEmbedding.tenant_id == tenant_id)
        rows = s.execute(
            select(JobMatch).where(
                JobMatch.tenant_id == tenant_id,
                JobMatch.resume_id == resume_id,
                JobMatch.external_job_id.in_(live),
            )
        ).scalars().all()
        return sorted(
            rows,
            key=lambda m: (-m.combined_score, -m.created_at.timestamp(), -m.similarity, m.external_job_id),
        )

    @staticmethod
    def _to_match(row: JobMatch, cached: bool) -> Match:
        return Match(
            external_job_id=row.external_job_id,
            combined_score=_r3(row.combined_score),
            similarity=_r3(row.similarity),
            skill_match_score=_r3(row.skill_match_score) if row.skill_match_score is not None else None,
            matched_skills=list(row.matched_skills or []),
            missing_skills=list(row.missing_skills or []),
            related_matches=[RelatedMatch.model_validate(r) for r in (row.related_matches or [])],
            reasoning=row.reasoning,
            cached=cached,
            created_at=row.created_at,
        )

    def get_stored_matches(self, resume_id: int, tenant_id: str, limit: int | None = None) -> list[Match]:
        """Previously computed matches only; never calls the provider."""
        limit = self.default_limit if limit is None else limit
        with self.session_factory() as s:
            rows = self._stored_rows(s, resume_id, tenant_id)
        return [self._to_match(r, cached=True) for r in rows[:limit]]

    # ---------- compute ----------
    def find_matches(
        self,
        resume_id: int,
        tenant_id: str,
        limit: int | None = None,
        threshold: float | None = None,
        required_skills: Mapping[str, Sequence[str]] | None = None,
    ) -> list[Match]:
        limit = self.default_limit if limit is None else limit
        threshold = self.default_threshold if threshold is None else threshold
        if limit < 1:
            raise ValueError("limit must be >= 1")

        with self.session_factory() as s:
            resume = s.execute(
                select(Resume).where(Resume.id == resume_id, Resume.tenant_id == tenant_id)
            ).scalars().first()
            if resume is None:
                raise ResumeNotFoundError(resume_id, tenant_id)

            cached = self._stored_rows(s, resume_id, tenant_id)
            if cached:
                log.info("resume %s: %d cached matches (tenant %s)", resume_id, len(cached), tenant_id)
                return [self._to_match(r, cached=True) for r in cached[:limit]]

            resume_vec = from_blob(resume.embedding, resume.dim)
            candidate_skills = list(resume.extracted_skills or [])

        scored = []
        for job_id, vec in self.index.vectors(tenant_id):
            sim = cosine_similarity(resume_vec, vec)
            if sim >= threshold:
                scored.append((job_id, float(sim)))
        scored.sort(key=lambda t: (-t[1], t[0]))
        pool = scored[: limit * 2 if self.enrich else limit]

        required_skills = required_skills or {}
        ranked = []
        for rank, (job_id, sim) in enumerate(pool):
            if self.enrich:
                overlap = self.gateway.analyze_skill_overlap(candidate_skills, required_skills.get(job_id) or [])
                combined = self.similarity_weight * sim + self.skill_weight * (overlap.match_score / 100.0)
                row = {
                    "combined_score": combined,
                    "skill_match_score": float(overlap.match_score),
                    "matched_skills": overlap.matched_skills,
                    "missing_skills": list(overlap.missing_skills),
                    "related_matches": [r.model_dump(by_alias=True) for r in overlap.related_matches],
                    "reasoning": overlap.reasoning,
                }
            else:
                row = {
                    "combined_score": sim,
                    "skill_match_score": None,
                    "matched_skills": [],
                    "missing_skills": [],
                    "related_matches": [],
                    "reasoning": LIGHTWEIGHT_REASONING,
                }
            row.update(external_job_id=job_id, similarity=sim)
            ranked.append((rank, row))

        # ties on combined keep similarity order, then the lower job id
        ranked.sort(key=lambda t: (-t[1]["combined_score"], t[0], t[1]["external_job_id"]))
        final = [row for _, row in ranked[:limit]]

        now = utcnow()
        with self.session_factory() as s:
            for row in final:
                row.update(tenant_id=tenant_id, resume_id=resume_id, created_at=now)
                upsert_row(
                    s,
                    JobMatch,
                    row,
                    key_cols=("tenant_id", "resume_id", "external_job_id"),
                    update_cols=("combined_score", "similarity", "skill_match_score", "matched_skills",
                                 "missing_skills", "related_matches", "reasoning", "created_at"),
                )
            s.commit()

        log.info("resume %s: %d of %d jobs over threshold %.2f, returning %d (tenant %s, enrich=%s)",
                 resume_id, len(scored), self.index.count(tenant_id), threshold, len(final), tenant_id, self.enrich)
        # transient rows, never added to a session
        return [self._to_match(JobMatch(**row), cached=False) for row in final]

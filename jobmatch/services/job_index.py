# jobmatch/services/job_index.py
import logging
import time
from typing import Sequence

import numpy as np
from pydantic import ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.orm import sessionmaker

from jobmatch.db.models import JobEmbedding, utcnow
from jobmatch.db.upsert import upsert_row
from jobmatch.nlp.embeddings import EmbeddingGateway, build_job_text
from jobmatch.nlp.vectors import from_blob, to_blob
from jobmatch.schemas.jobs import JobRecord, SyncResult
from jobmatch.services.fallback import BatchFallbackPolicy

log = logging.getLogger(__name__)

_DELETE_CHUNK = 500


def _coerce(raw) -> JobRecord | None:
    if isinstance(raw, JobRecord):
        return raw
    try:
        return JobRecord.model_validate(raw)
    except ValidationError as e:
        jid = raw.get("id") if isinstance(raw, dict) else None
        log.warning("skipping malformed job %r: %d field error(s)", jid, e.error_count())
        return None


class JobEmbeddingIndex:
    """
    Per-tenant external_job_id -> vector. A sync pass makes the set match the
    payload it was given: new ids are created, known ids refreshed, and ids
    absent from the payload pruned.
    """

    def __init__(self, session_factory: sessionmaker, gateway: EmbeddingGateway,
                 policy: BatchFallbackPolicy | None = None):
        self.session_factory = session_factory
        self.gateway = gateway
        self.policy = policy or BatchFallbackPolicy()

    # ---------- reads ----------
    def count(self, tenant_id: str) -> int:
        with self.session_factory() as s:
            return s.execute(
                select(func.count(JobEmbedding.id)).where(JobEmbedding.tenant_id == tenant_id)
            ).scalar_one()

    def job_ids(self, tenant_id: str) -> list[str]:
        with self.session_factory() as s:
            return list(s.execute(
                select(JobEmbedding.external_job_id)
                .where(JobEmbedding.tenant_id == tenant_id)
                .order_by(JobEmbedding.external_job_id)
            ).scalars())

    def vectors(self, tenant_id: str) -> list[tuple[str, np.ndarray | None]]:
        """(external_job_id, vector) pairs; None where the stored vector is unreadable."""
        with self.session_factory() as s:
            rows = s.execute(
                select(JobEmbedding.external_job_id, JobEmbedding.embedding, JobEmbedding.dim)
                .where(JobEmbedding.tenant_id == tenant_id)
            ).all()
        return [(jid, from_blob(blob, dim)) for jid, blob, dim in rows]

    # ---------- sync ----------
    def _valid_jobs(self, jobs: Sequence) -> list[JobRecord]:
        out: list[JobRecord] = []
        seen: set[str] = set()
        for raw in jobs:
            j = _coerce(raw)
            if j is None:
                continue
            if not j.id:
                log.warning("skipping job without id (title=%r)", j.title)
                continue
            if not j.has_content:
                log.warning("skipping job %s: no title, description or text", j.id)
                continue
            if j.id in seen:
                log.warning("skipping duplicate job %s in payload", j.id)
                continue
            seen.add(j.id)
            out.append(j)
        return out

    def sync_jobs(self, jobs: Sequence, tenant_id: str) -> SyncResult:
        t0 = time.perf_counter()
        jobs = list(jobs)
        result = SyncResult(total=len(jobs))
        valid = self._valid_jobs(jobs)
        if not valid:
            log.warning("sync for tenant %s: no valid jobs in payload, index left untouched", tenant_id)
            return result

        outcome = self.policy.run(
            valid,
            to_text=build_job_text,
            embed_batch=self.gateway.embed_batch,
            embed_one=self.gateway.embed,
            label=lambda j: f"job {j.id}",
        )

        with self.session_factory() as s:
            now = utcnow()
            for job, vec in outcome.succeeded:
                created = upsert_row(
                    s,
                    JobEmbedding,
                    {
                        "tenant_id": tenant_id,
                        "external_job_id": job.id,
                        "embedding": to_blob(vec),
                        "dim": int(vec.shape[0]),
                        "created_at": now,
                        "updated_at": now,
                    },
                    key_cols=("tenant_id", "external_job_id"),
                    update_cols=("embedding", "dim", "updated_at"),
                )
                if created:
                    result.created += 1
                else:
                    result.updated += 1
            result.processed = len(outcome.succeeded)
            s.commit()

            # upserts are committed; now drop whatever this pass did not touch
            keep = {job.id for job, _ in outcome.succeeded}
            if keep:
                result.deleted = self._prune(s, tenant_id, keep)
                s.commit()
            else:
                log.error("sync for tenant %s: every embedding failed, prune skipped", tenant_id)

        log.info(
            "sync tenant=%s total=%d processed=%d created=%d updated=%d deleted=%d skipped=%d in %.2fs",
            tenant_id, result.total, result.processed, result.created, result.updated,
            result.deleted, len(outcome.skipped), time.perf_counter() - t0,
        )
        return result

    def _prune(self, s, tenant_id: str, keep: set[str]) -> int:
        existing = s.execute(
            select(JobEmbedding.external_job_id).where(JobEmbedding.tenant_id == tenant_id)
        ).scalars().all()
        stale = sorted(set(existing) - keep)
        for i in range(0, len(stale), _DELETE_CHUNK):
            s.execute(
                delete(JobEmbedding).where(
                    JobEmbedding.tenant_id == tenant_id,
                    JobEmbedding.external_job_id.in_(stale[i:i + _DELETE_CHUNK]),
                )
            )
        if stale:
            log.info("pruned %d stale job embeddings for tenant %s", len(stale), tenant_id)
        return len(stale)

# jobmatch/services/resume_store.py
import hashlib
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from jobmatch.db.models import PREFIX_CHARS, VERIFY_CHARS, Resume, utcnow
from jobmatch.db.upsert import upsert_row
from jobmatch.nlp.embeddings import EmbeddingGateway
from jobmatch.nlp.extractors import analyze_resume_text
from jobmatch.nlp.vectors import to_blob

log = logging.getLogger(__name__)

CACHE_FULL = "full"
CACHE_PARTIAL = "partial"
CACHE_MISS = "miss"


def text_prefix(text: str) -> str:
    return text[:PREFIX_CHARS].strip()


def content_hash(text: str) -> str:
    return hashlib.sha256(text[:VERIFY_CHARS].encode("utf-8")).hexdigest()


def _clean_email(email: str | None) -> str | None:
    email = (email or "").strip()
    return email or None


def _clean_ip(ip: str | None) -> str | None:
    ip = (ip or "").strip()
    if not ip or ip.lower() == "unknown":
        return None
    return ip


@dataclass
class StoreOutcome:
    resume: Resume
    cache: str  # CACHE_FULL | CACHE_PARTIAL | CACHE_MISS


class ResumeStore:
    """
    Persists resumes per tenant and decides whether an upload needs a new
    embedding at all. Only a cache miss calls the provider.
    """

    def __init__(self, session_factory: sessionmaker, gateway: EmbeddingGateway):
        self.session_factory = session_factory
        self.gateway = gateway

    # ---------- lookups ----------
    def _find(self, s: Session, tenant_id: str, text: str, email: str | None) -> Resume | None:
        q = select(Resume).where(
            Resume.tenant_id == tenant_id,
            Resume.text_prefix == text_prefix(text),
        )
        if email is not None:
            q = q.where(Resume.contact_email == email)
        head = text[:VERIFY_CHARS]
        for r in s.execute(q.order_by(Resume.id)).scalars():
            # a shared prefix is not enough; compare the first 1000 chars
            if r.raw_text[:VERIFY_CHARS] == head:
                return r
        return None

    def _lookup(self, s: Session, tenant_id: str, text: str, email: str | None) -> tuple[Resume | None, str]:
        try:
            if email is not None:
                r = self._find(s, tenant_id, text, email)
                if r is not None:
                    return r, CACHE_FULL
            r = self._find(s, tenant_id, text, None)
            if r is not None:
                return r, CACHE_PARTIAL
        except SQLAlchemyError as e:
            # fail open: recompute instead of blocking the upload
            log.warning("resume dedup lookup failed for tenant %s, treating as miss: %s", tenant_id, e)
            s.rollback()
        return None, CACHE_MISS

    def get(self, resume_id: int, tenant_id: str) -> Resume | None:
        with self.session_factory() as s:
            return s.execute(
                select(Resume).where(Resume.id == resume_id, Resume.tenant_id == tenant_id)
            ).scalars().first()

    # ---------- write path ----------
    def store_resume(self, text: str, filename: str | None, tenant_id: str,
                     email: str | None = None, ip: str | None = None) -> StoreOutcome:
        if not text or not text.strip():
            raise ValueError("resume text is empty")
        email = _clean_email(email)
        ip = _clean_ip(ip)

        with self.session_factory() as s:
            existing, cache = self._lookup(s, tenant_id, text, email)

            if cache == CACHE_FULL:
                if ip is not None and existing.source_ip != ip:
                    existing.source_ip = ip
                    s.commit()
                log.info("resume %s: full cache hit (tenant %s)", existing.id, tenant_id)
                return StoreOutcome(existing, cache)

            if cache == CACHE_PARTIAL:
                changed = False
                if email is not None and existing.contact_email != email:
                    existing.contact_email = email
                    changed = True
                if ip is not None and existing.source_ip != ip:
                    existing.source_ip = ip
                    changed = True
                if changed:
                    s.commit()
                log.info("resume %s: partial cache hit (tenant %s)", existing.id, tenant_id)
                return StoreOutcome(existing, cache)

            resume = self._insert(s, text, filename, tenant_id, email, ip)
            log.info("resume %s: stored new (tenant %s, %d skills, %.1f yrs via %s)",
                     resume.id, tenant_id, len(resume.extracted_skills),
                     resume.experience_years, resume.experience_source)
            return StoreOutcome(resume, CACHE_MISS)

    def _insert(self, s: Session, text: str, filename: str | None, tenant_id: str,
                email: str | None, ip: str | None) -> Resume:
        analysis = analyze_resume_text(text)
        canonical = self.gateway.build_resume_text(
            text, analysis.skills, analysis.experience_years, analysis.education,
        )
        vec = self.gateway.embed(canonical)

        values = {
            "tenant_id": tenant_id,
            "filename": filename,
            "raw_text": text,
            "text_prefix": text_prefix(text),
            "content_hash": content_hash(text),
            "extracted_skills": analysis.skills,
            "education": analysis.education,
            "experience_years": analysis.experience_years,
            "experience_source": analysis.experience_source,
            "embedding": to_blob(vec),
            "dim": int(vec.shape[0]),
            "contact_email": email,
            "source_ip": ip,
            "created_at": utcnow(),
        }
        # a concurrent upload of the same content may have won the race;
        # then only the contact fields we actually have are written
        update_cols = tuple(c for c in ("contact_email", "source_ip") if values[c] is not None)
        update_cols = update_cols or ("tenant_id",)  # no-op update
        upsert_row(s, Resume, values, ("tenant_id", "content_hash"), update_cols)
        s.commit()
        return s.execute(
            select(Resume).where(
                Resume.tenant_id == tenant_id,
                Resume.content_hash == values["content_hash"],
            )
        ).scalars().one()

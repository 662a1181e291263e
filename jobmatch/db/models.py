from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    JSON, DateTime, Float, ForeignKey, Index, Integer, LargeBinary, String, Text,
    UniqueConstraint, func,
)
from jobmatch.db.base import Base

PREFIX_CHARS = 100     # weak dedup key length
VERIFY_CHARS = 1000    # full-text check after a prefix hit


def utcnow() -> datetime:
    # naive UTC, what SQLite DateTime round-trips
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Resume(Base):
    __tablename__ = "resumes"
    __table_args__ = (
        UniqueConstraint("tenant_id", "content_hash", name="uq_resumes_tenant_content"),
        Index("ix_resumes_tenant_prefix", "tenant_id", "text_prefix"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    filename: Mapped[str | None] = mapped_column(String(255))
    raw_text: Mapped[str] = mapped_column(Text, nullable=False)
    text_prefix: Mapped[str] = mapped_column(String(PREFIX_CHARS), nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)  # sha256 of raw_text[:1000]
    extracted_skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    education: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    experience_years: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    experience_source: Mapped[str | None] = mapped_column(String(20))
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)  # np.float32 .tobytes()
    dim: Mapped[int] = mapped_column(Integer, nullable=False)
    contact_email: Mapped[str | None] = mapped_column(String(255), index=True)
    source_ip: Mapped[str | None] = mapped_column(String(45))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    matches = relationship(
        "JobMatch",
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class JobEmbedding(Base):
    """Only the vector of an external job; title/description stay in the catalog."""
    __tablename__ = "job_embeddings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "external_job_id", name="uq_job_embeddings_tenant_job"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    external_job_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    dim: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class JobMatch(Base):
    __tablename__ = "job_matches"
    __table_args__ = (
        UniqueConstraint("tenant_id", "resume_id", "external_job_id", name="uq_job_matches_tenant_resume_job"),
        Index("ix_job_matches_resume_score", "tenant_id", "resume_id", "combined_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    resume_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("resumes.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    external_job_id: Mapped[str] = mapped_column(String(255), nullable=False)
    combined_score: Mapped[float] = mapped_column(Float, nullable=False)
    similarity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    skill_match_score: Mapped[float | None] = mapped_column(Float)
    matched_skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    missing_skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    related_matches: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    reasoning: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    resume = relationship("Resume", back_populates="matches")

# jobmatch/services/analytics.py
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import sessionmaker

from jobmatch.db.models import Resume, utcnow
from jobmatch.schemas.resume import UploadStats


def upload_stats(session_factory: sessionmaker, tenant_id: str, days: int = 30,
                 now: datetime | None = None) -> UploadStats:
    """Upload counters for one tenant; `by_date` covers the last `days` days (UTC)."""
    now = now or utcnow()
    since = (now - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    tenant = Resume.tenant_id == tenant_id

    with session_factory() as s:
        total, unique_emails, unique_ips, with_email, with_ip = s.execute(
            select(
                func.count(Resume.id),
                func.count(distinct(Resume.contact_email)),
                func.count(distinct(Resume.source_ip)),
                func.count(Resume.contact_email),
                func.count(Resume.source_ip),
            ).where(tenant)
        ).one()
        recent = s.execute(
            select(Resume.created_at).where(tenant, Resume.created_at >= since)
        ).scalars().all()

    by_date = Counter(ts.date().isoformat() for ts in recent if ts is not None)
    return UploadStats(
        total_uploads=total,
        unique_emails=unique_emails,
        unique_ips=unique_ips,
        with_email=with_email,
        with_ip=with_ip,
        by_date=dict(sorted(by_date.items(), reverse=True)),
    )

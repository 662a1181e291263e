from datetime import timedelta

from sqlalchemy import update

from jobmatch.db.models import Resume, utcnow
from jobmatch.services.analytics import upload_stats


def test_upload_stats_per_tenant(store, session_factory):
    store.store_resume("resume one, Python", None, "t1", email="a@x.com", ip="1.1.1.1")
    store.store_resume("resume two, Java", None, "t1", email="b@x.com", ip="1.1.1.1")
    store.store_resume("resume three, Go", None, "t1")
    store.store_resume("other tenant", None, "t2", email="c@x.com")

    stats = upload_stats(session_factory, "t1")
    assert stats.total_uploads == 3
    assert stats.unique_emails == 2
    assert stats.unique_ips == 1
    assert stats.with_email == 2
    assert stats.with_ip == 2
    assert stats.by_date == {utcnow().date().isoformat(): 3}


def test_old_uploads_fall_out_of_daily_window(store, session_factory):
    out = store.store_resume("an old resume", None, "t1")
    store.store_resume("a new resume", None, "t1")
    with session_factory() as s:
        s.execute(
            update(Resume).where(Resume.id == out.resume.id).values(created_at=utcnow() - timedelta(days=45))
        )
        s.commit()

    stats = upload_stats(session_factory, "t1")
    assert stats.total_uploads == 2
    assert sum(stats.by_date.values()) == 1

# jobmatch/api/routes.py
from fastapi import APIRouter, Depends

from jobmatch.api.deps import get_services, get_tenant
from jobmatch.schemas.resume import UploadStats
from jobmatch.services.analytics import upload_stats

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/analytics", response_model=UploadStats, tags=["analytics"])
def analytics(tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    """Upload counts for the calling tenant, with a per-day breakdown for the last 30 days."""
    return upload_stats(svc.session_factory, tenant)

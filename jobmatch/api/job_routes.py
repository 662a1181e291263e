# jobmatch/api/job_routes.py
from fastapi import APIRouter, Depends

from jobmatch.api.deps import get_services, get_tenant
from jobmatch.schemas.jobs import JobSyncIn, SyncResult

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/sync", response_model=SyncResult)
def sync_jobs(body: JobSyncIn, tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    """Replace the tenant's job index with the posted catalog snapshot."""
    return svc.index.sync_jobs(body.jobs, tenant)


@router.get("/count")
def job_count(tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    return {"tenant_id": tenant, "count": svc.index.count(tenant)}

# jobmatch/api/resume_routes.py
from fastapi import APIRouter, Depends, HTTPException, Request

from jobmatch.api.deps import client_ip, get_services, get_tenant
from jobmatch.core.errors import ResumeNotFoundError
from jobmatch.schemas.matching import Match, MatchRequest
from jobmatch.schemas.resume import ResumeIn, ResumeOut, StoreResult

router = APIRouter(prefix="/resumes", tags=["resumes"])


@router.post("", response_model=StoreResult, status_code=201)
def store_resume(body: ResumeIn, request: Request, tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    try:
        out = svc.resumes.store_resume(
            body.text, body.filename, tenant, email=body.email, ip=client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return StoreResult(resume=ResumeOut.model_validate(out.resume), cache=out.cache)


@router.get("/{resume_id}/matches", response_model=list[Match])
def stored_matches(resume_id: int, limit: int | None = None,
                   tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    if svc.resumes.get(resume_id, tenant) is None:
        raise HTTPException(status_code=404, detail="Resume not found")
    return svc.matcher.get_stored_matches(resume_id, tenant, limit)


@router.post("/{resume_id}/matches", response_model=list[Match])
def find_matches(resume_id: int, body: MatchRequest | None = None,
                 tenant: str = Depends(get_tenant), svc=Depends(get_services)):
    """
    Rank the tenant's indexed jobs for this resume. Once stored, results are
    returned as-is on later calls, so send `required_skills` on the first call;
    a map sent after the matches are cached does not rescore them.
    """
    body = body or MatchRequest()
    try:
        return svc.matcher.find_matches(
            resume_id, tenant,
            limit=body.limit,
            threshold=body.threshold,
            required_skills=body.required_skills,
        )
    except ResumeNotFoundError:
        raise HTTPException(status_code=404, detail="Resume not found")

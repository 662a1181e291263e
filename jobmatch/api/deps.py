# jobmatch/api/deps.py
from fastapi import Header, HTTPException, Request


def get_services(request: Request):
    return request.app.state.services


def get_tenant(x_tenant_id: str = Header(default="", alias="X-Tenant-ID")) -> str:
    tenant = x_tenant_id.strip()
    if not tenant:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is required")
    return tenant


def client_ip(request: Request) -> str | None:
    fwd = request.headers.get("x-forwarded-for", "")
    if fwd:
        return fwd.split(",")[0].strip()
    return request.client.host if request.client else None

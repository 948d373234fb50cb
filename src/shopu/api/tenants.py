"""FastAPI endpoints for tenant registration and shop administration."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from shopu.api.schemas import (
    ApiKeyResponse,
    CustomDomainRequest,
    RegisterTenantRequest,
    StatusResponse,
    TenantRegisteredResponse,
    UpdateTenantRequest,
)
from shopu.tenancy.access import current_tenant, tenant_admin
from shopu.tenancy.management import (
    ActivateTenant,
    DeactivateTenant,
    RemoveCustomDomain,
    RotateApiKey,
    SetCustomDomain,
    UpdateTenant,
)
from shopu.tenancy.registration import RegisterTenant
from shopu.tenancy.tenant import Tenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _reload(tenant_id) -> dict:
    return current_domain.repository_for(Tenant).get(tenant_id).to_dict()


@router.post("", status_code=201, response_model=TenantRegisteredResponse)
async def register_tenant(body: RegisterTenantRequest) -> TenantRegisteredResponse:
    """Register a shop. The API key is returned only here; store it safely."""
    command = RegisterTenant(
        name=body.name,
        subdomain=body.subdomain.strip().lower(),
        owner_email=body.owner_email,
    )
    result = current_domain.process(command, asynchronous=False)
    return TenantRegisteredResponse(
        tenant_id=result["tenant_id"],
        api_key=result["api_key"],
        tenant=_reload(result["tenant_id"]),
    )


@router.get("/current")
async def get_current_tenant(tenant: Tenant = Depends(current_tenant)) -> dict:
    data = tenant.to_dict()
    data.pop("owner_email", None)
    return data


@router.put("/current")
async def update_tenant(body: UpdateTenantRequest, tenant: Tenant = Depends(tenant_admin)) -> dict:
    command = UpdateTenant(
        tenant_id=str(tenant.id),
        name=body.name,
        subdomain=body.subdomain.strip().lower() if body.subdomain else None,
    )
    current_domain.process(command, asynchronous=False)
    return _reload(tenant.id)


@router.put("/current/domain")
async def set_custom_domain(body: CustomDomainRequest, tenant: Tenant = Depends(tenant_admin)) -> dict:
    command = SetCustomDomain(tenant_id=str(tenant.id), custom_domain=body.custom_domain)
    current_domain.process(command, asynchronous=False)
    return _reload(tenant.id)


@router.delete("/current/domain")
async def remove_custom_domain(tenant: Tenant = Depends(tenant_admin)) -> dict:
    current_domain.process(RemoveCustomDomain(tenant_id=str(tenant.id)), asynchronous=False)
    return _reload(tenant.id)


@router.post("/current/activate", response_model=StatusResponse)
async def activate_tenant(tenant: Tenant = Depends(tenant_admin)) -> StatusResponse:
    current_domain.process(ActivateTenant(tenant_id=str(tenant.id)), asynchronous=False)
    return StatusResponse()


@router.post("/current/deactivate", response_model=StatusResponse)
async def deactivate_tenant(tenant: Tenant = Depends(tenant_admin)) -> StatusResponse:
    current_domain.process(DeactivateTenant(tenant_id=str(tenant.id)), asynchronous=False)
    return StatusResponse()


@router.post("/current/api-key", response_model=ApiKeyResponse)
async def rotate_api_key(tenant: Tenant = Depends(tenant_admin)) -> ApiKeyResponse:
    api_key = current_domain.process(RotateApiKey(tenant_id=str(tenant.id)), asynchronous=False)
    return ApiKeyResponse(api_key=api_key)

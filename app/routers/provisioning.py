from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import verify_admin_key
from app.schemas.provisioning import (
    CreateTenantRequest,
    CreateTenantResponse,
    ProvisioningStatusResponse,
)
from app.services.provisioning import provisioning_service

router = APIRouter()


@router.post("", response_model=CreateTenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    request: CreateTenantRequest,
    db: Session = Depends(get_db),
    _: None = Depends(verify_admin_key)
):
    """
    Create a new tenant with its admin user and queue provisioning.

    Protected by the api-key-header header. Returns as soon as the tenant
    exists; poll the status endpoint for seeding progress.
    """
    return provisioning_service.create_tenant(db, request)


@router.get("/{tenant_id}/status", response_model=ProvisioningStatusResponse)
def get_provisioning_status(tenant_id: int, db: Session = Depends(get_db)):
    """Get provisioning progress for a tenant. Never fails for unknown tenants."""
    return provisioning_service.get_provisioning_status(db, tenant_id)


@router.post("/{tenant_id}/retry", response_model=CreateTenantResponse)
def retry_provisioning(
    tenant_id: int,
    request: CreateTenantRequest,
    db: Session = Depends(get_db),
    _: None = Depends(verify_admin_key)
):
    """Re-run the seed pipeline for a tenant whose provisioning failed."""
    return provisioning_service.retry_provisioning(db, tenant_id, request)

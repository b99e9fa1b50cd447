from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class ProvisioningStatus(str, Enum):
    """Progress of the seed pipeline for a tenant."""
    PENDING = "PENDING"
    CREATING_TENANT = "CREATING_TENANT"
    CREATING_USER = "CREATING_USER"
    SEEDING_ACCOUNTS = "SEEDING_ACCOUNTS"
    SEEDING_WAREHOUSE = "SEEDING_WAREHOUSE"
    SEEDING_UOMS = "SEEDING_UOMS"
    SEEDING_DEFAULTS = "SEEDING_DEFAULTS"
    READY = "READY"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ProvisioningStatus.READY, ProvisioningStatus.FAILED)


class ProvisioningStep(BaseModel):
    status: ProvisioningStatus
    progress: int
    label: str


# Fixed progress checkpoints, in pipeline order
PROVISIONING_STEPS = {
    step.status: step
    for step in [
        ProvisioningStep(status=ProvisioningStatus.CREATING_TENANT, progress=10, label="Creating tenant..."),
        ProvisioningStep(status=ProvisioningStatus.CREATING_USER, progress=20, label="Creating admin user..."),
        ProvisioningStep(status=ProvisioningStatus.SEEDING_ACCOUNTS, progress=40, label="Setting up chart of accounts..."),
        ProvisioningStep(status=ProvisioningStatus.SEEDING_WAREHOUSE, progress=60, label="Creating default warehouse..."),
        ProvisioningStep(status=ProvisioningStatus.SEEDING_UOMS, progress=80, label="Setting up units of measure..."),
        ProvisioningStep(status=ProvisioningStatus.SEEDING_DEFAULTS, progress=90, label="Configuring defaults..."),
        ProvisioningStep(status=ProvisioningStatus.READY, progress=100, label="Ready!"),
    ]
}


class ProvisioningStatusRecord(BaseModel):
    """Ephemeral status record kept in Redis, one per tenant."""
    tenant_id: int
    status: ProvisioningStatus = ProvisioningStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    current_step: Optional[str] = "Queued for provisioning..."
    error: Optional[str] = None
    completed_at: Optional[datetime] = None


class CreateTenantRequest(BaseModel):
    """Request schema for provisioning a tenant (admin API and retries)"""
    business_name: str = Field(..., min_length=2, max_length=100)
    owner_email: EmailStr
    owner_password: str = Field(..., min_length=8, max_length=100)
    domain: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-z0-9-]+$",
        description="Subdomain: lowercase letters, numbers, and hyphens only"
    )
    base_currency: str = Field(default="USD", min_length=3, max_length=3)


class CreateTenantResponse(BaseModel):
    tenant_id: int
    status: ProvisioningStatus


class ProvisioningStatusResponse(BaseModel):
    tenant_id: int
    status: ProvisioningStatus
    progress: int
    current_step: Optional[str] = None
    error: Optional[str] = None
    completed_at: Optional[datetime] = None

from datetime import datetime, timedelta, timezone
from app.models.tenant import Tenant, OnboardingStep, PaymentProvider, PaymentProviderStatus
from app.models.user import User
from app.models.oauth_state import OAuthState
from app.models.warehouse import Warehouse, Location


def test_tenant_defaults(db):
    tenant = Tenant(name="Test Tenant", domain="test-tenant", email="owner@test.example")
    db.add(tenant)
    db.commit()
    db.refresh(tenant)

    assert tenant.id is not None
    assert tenant.is_active is False
    assert tenant.base_currency == "USD"
    assert tenant.payment_provider == PaymentProvider.NONE
    assert tenant.payment_provider_status == PaymentProviderStatus.NONE
    assert tenant.onboarding_step == OnboardingStep.PROVISIONING
    assert tenant.stripe_charges_enabled is False
    assert tenant.created_at is not None


def test_user_belongs_to_tenant(db):
    tenant = Tenant(name="Test Tenant", domain="test-tenant", email="owner@test.example")
    db.add(tenant)
    db.commit()

    user = User(email="owner@test.example", hashed_password="x", tenant_id=tenant.id)
    db.add(user)
    db.commit()
    db.refresh(tenant)

    assert [u.email for u in tenant.users] == ["owner@test.example"]
    assert user.role == "admin"
    assert user.email_verified is False


def test_oauth_state_expiry_handles_naive_timestamps(db):
    tenant = Tenant(name="Test Tenant", domain="test-tenant", email="owner@test.example")
    db.add(tenant)
    db.commit()

    now = datetime.now(timezone.utc)
    state = OAuthState(id="a" * 64, tenant_id=tenant.id, expires_at=now + timedelta(minutes=10))
    db.add(state)
    db.commit()
    db.refresh(state)

    # SQLite hands timestamps back without tzinfo
    assert state.is_expired(now) is False
    assert state.is_expired(now + timedelta(minutes=10)) is True


def test_warehouse_locations_cascade(db):
    tenant = Tenant(name="Test Tenant", domain="test-tenant", email="owner@test.example")
    db.add(tenant)
    db.commit()

    warehouse = Warehouse(tenant_id=tenant.id, code="MAIN", name="Main Warehouse")
    warehouse.locations.append(
        Location(tenant_id=tenant.id, code="ROOT", name="Root", path="ROOT")
    )
    db.add(warehouse)
    db.commit()

    db.delete(warehouse)
    db.commit()

    assert db.query(Location).count() == 0

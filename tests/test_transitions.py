import pytest
from app.core.exceptions import InvalidTransitionError
from app.core.transitions import (
    ONBOARDING_STEP_TRANSITIONS,
    PAYMENT_STATUS_TRANSITIONS,
    PROVISIONING_RETRY_TRANSITIONS,
    PROVISIONING_TRANSITIONS,
    can_transition,
    ensure_transition,
)
from app.models.tenant import OnboardingStep, PaymentProviderStatus
from app.schemas.provisioning import ProvisioningStatus


def test_provisioning_moves_forward_or_fails():
    assert can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.PENDING, ProvisioningStatus.CREATING_TENANT)
    assert can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.SEEDING_UOMS, ProvisioningStatus.READY)
    assert can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.SEEDING_ACCOUNTS, ProvisioningStatus.FAILED)
    assert not can_transition(
        PROVISIONING_TRANSITIONS, ProvisioningStatus.SEEDING_WAREHOUSE, ProvisioningStatus.SEEDING_ACCOUNTS
    )


def test_ready_is_terminal_and_failed_can_restart():
    assert not can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.READY, ProvisioningStatus.FAILED)
    assert not can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.READY, ProvisioningStatus.PENDING)
    assert can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.FAILED, ProvisioningStatus.PENDING)
    assert not can_transition(PROVISIONING_TRANSITIONS, ProvisioningStatus.FAILED, ProvisioningStatus.READY)


def test_same_state_is_always_allowed():
    assert can_transition(PAYMENT_STATUS_TRANSITIONS, PaymentProviderStatus.DISABLED, PaymentProviderStatus.DISABLED)
    assert can_transition(ONBOARDING_STEP_TRANSITIONS, OnboardingStep.COMPLETED, OnboardingStep.COMPLETED)


def test_active_payment_status_is_never_demoted():
    assert not can_transition(
        PAYMENT_STATUS_TRANSITIONS, PaymentProviderStatus.ACTIVE, PaymentProviderStatus.ONBOARDING
    )
    assert can_transition(PAYMENT_STATUS_TRANSITIONS, PaymentProviderStatus.ACTIVE, PaymentProviderStatus.DISABLED)


def test_onboarding_step_never_goes_back():
    assert can_transition(ONBOARDING_STEP_TRANSITIONS, OnboardingStep.PROVISIONING, OnboardingStep.COMPLETED)
    assert not can_transition(ONBOARDING_STEP_TRANSITIONS, OnboardingStep.COMPLETED, OnboardingStep.PAYMENT)
    assert not can_transition(
        ONBOARDING_STEP_TRANSITIONS, OnboardingStep.PAYMENT_COMPLETE, OnboardingStep.PAYMENT
    )


def test_ensure_transition_names_the_field():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(
            ONBOARDING_STEP_TRANSITIONS, OnboardingStep.COMPLETED, OnboardingStep.PAYMENT, "onboarding step"
        )

    assert exc_info.value.status_code == 400
    assert "onboarding step" in exc_info.value.detail
    assert "'completed'" in exc_info.value.detail


def test_retry_can_restart_anything_but_ready():
    for status in ProvisioningStatus:
        restartable = can_transition(PROVISIONING_RETRY_TRANSITIONS, status, ProvisioningStatus.PENDING)
        assert restartable is (status != ProvisioningStatus.READY)

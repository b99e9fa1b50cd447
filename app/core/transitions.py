"""
Explicit transition tables for the onboarding state machines.

Status fields are closed enums; writers go through ensure_transition so an
illegal move is rejected at the boundary instead of being persisted.
"""

from enum import Enum
from typing import Dict, FrozenSet, Mapping
from app.core.exceptions import InvalidTransitionError
from app.models.tenant import OnboardingStep, PaymentProviderStatus
from app.schemas.provisioning import ProvisioningStatus

TransitionTable = Mapping[Enum, FrozenSet[Enum]]

_SEED_SEQUENCE = [
    ProvisioningStatus.PENDING,
    ProvisioningStatus.CREATING_TENANT,
    ProvisioningStatus.CREATING_USER,
    ProvisioningStatus.SEEDING_ACCOUNTS,
    ProvisioningStatus.SEEDING_WAREHOUSE,
    ProvisioningStatus.SEEDING_UOMS,
    ProvisioningStatus.SEEDING_DEFAULTS,
    ProvisioningStatus.READY,
]


def _build_provisioning_transitions() -> Dict[ProvisioningStatus, FrozenSet[ProvisioningStatus]]:
    table: Dict[ProvisioningStatus, FrozenSet[ProvisioningStatus]] = {}
    for index, current in enumerate(_SEED_SEQUENCE[:-1]):
        # Forward only, or straight to FAILED
        table[current] = frozenset(_SEED_SEQUENCE[index + 1:]) | {ProvisioningStatus.FAILED}
    table[ProvisioningStatus.READY] = frozenset()
    # A retry starts a new attempt
    table[ProvisioningStatus.FAILED] = frozenset({ProvisioningStatus.PENDING})
    return table


PROVISIONING_TRANSITIONS = _build_provisioning_transitions()

# Retry only: an attempt that never reached READY can always start over,
# including one whose worker died without recording FAILED
PROVISIONING_RETRY_TRANSITIONS = {
    status: frozenset() if status == ProvisioningStatus.READY else frozenset({ProvisioningStatus.PENDING})
    for status in ProvisioningStatus
}

ONBOARDING_STEP_TRANSITIONS = {
    OnboardingStep.PROVISIONING: frozenset({OnboardingStep.PAYMENT, OnboardingStep.COMPLETED}),
    OnboardingStep.PAYMENT: frozenset({OnboardingStep.PAYMENT_COMPLETE, OnboardingStep.COMPLETED}),
    OnboardingStep.PAYMENT_COMPLETE: frozenset({OnboardingStep.COMPLETED}),
    OnboardingStep.COMPLETED: frozenset(),
}

PAYMENT_STATUS_TRANSITIONS = {
    PaymentProviderStatus.NONE: frozenset({PaymentProviderStatus.ONBOARDING}),
    PaymentProviderStatus.ONBOARDING: frozenset({PaymentProviderStatus.ACTIVE, PaymentProviderStatus.DISABLED}),
    PaymentProviderStatus.ACTIVE: frozenset({PaymentProviderStatus.DISABLED}),
    PaymentProviderStatus.DISABLED: frozenset(),
}


def can_transition(table: TransitionTable, current: Enum, target: Enum) -> bool:
    """Same-state writes are always allowed; everything else must be in the table."""
    return current == target or target in table.get(current, frozenset())


def ensure_transition(table: TransitionTable, current: Enum, target: Enum, field: str) -> None:
    if not can_transition(table, current, target):
        raise InvalidTransitionError(
            f"Cannot change {field} from '{current.value}' to '{target.value}'"
        )

import pytest
from app.core.exceptions import InvalidTransitionError
from app.schemas.provisioning import ProvisioningStatus, ProvisioningStatusRecord
from app.services.status_store import ProvisioningStatusStore, status_store


def _record(status, progress, **kwargs):
    return ProvisioningStatusRecord(tenant_id=7, status=status, progress=progress, **kwargs)


def test_unknown_tenant_reads_as_pending():
    assert status_store.find(7) is None

    record = status_store.get(7)

    assert record.status == ProvisioningStatus.PENDING
    assert record.progress == 0
    assert record.error is None


def test_records_are_written_with_ttl(redis_client):
    store = ProvisioningStatusStore(client=redis_client, ttl_seconds=120)

    store.set(7, _record(ProvisioningStatus.SEEDING_UOMS, 80, current_step="Setting up units of measure..."))

    assert redis_client.ttls["provisioning:7"] == 120
    assert store.get(7).current_step == "Setting up units of measure..."


def test_advance_rejects_going_backwards():
    status_store.advance(7, _record(ProvisioningStatus.SEEDING_WAREHOUSE, 60))

    with pytest.raises(InvalidTransitionError):
        status_store.advance(7, _record(ProvisioningStatus.SEEDING_ACCOUNTS, 40))

    assert status_store.get(7).status == ProvisioningStatus.SEEDING_WAREHOUSE


def test_advance_rejects_decreasing_progress():
    status_store.advance(7, _record(ProvisioningStatus.SEEDING_UOMS, 80))

    with pytest.raises(InvalidTransitionError):
        status_store.advance(7, _record(ProvisioningStatus.SEEDING_UOMS, 50))


def test_failed_attempt_can_restart_from_zero():
    status_store.advance(7, _record(ProvisioningStatus.SEEDING_UOMS, 80))
    status_store.advance(7, _record(ProvisioningStatus.FAILED, 80, error="boom"))

    record = status_store.advance(7, _record(ProvisioningStatus.PENDING, 0))

    assert record.status == ProvisioningStatus.PENDING
    assert status_store.get(7).progress == 0


def test_ready_cannot_be_overwritten():
    status_store.advance(7, _record(ProvisioningStatus.READY, 100))

    with pytest.raises(InvalidTransitionError):
        status_store.advance(7, _record(ProvisioningStatus.FAILED, 100))


def test_restart_resets_any_unfinished_attempt():
    status_store.set(7, _record(ProvisioningStatus.SEEDING_WAREHOUSE, 60))

    status_store.restart(7, _record(ProvisioningStatus.PENDING, 0, current_step="Retrying provisioning..."))

    record = status_store.get(7)
    assert record.status == ProvisioningStatus.PENDING
    assert record.progress == 0


def test_restart_refuses_a_finished_attempt():
    status_store.set(7, _record(ProvisioningStatus.READY, 100))

    with pytest.raises(InvalidTransitionError):
        status_store.restart(7, _record(ProvisioningStatus.PENDING, 0))


def test_fail_keeps_progress_and_skips_terminal_records():
    status_store.set(7, _record(ProvisioningStatus.SEEDING_ACCOUNTS, 40))

    failed = status_store.fail(7, "worker lost")

    assert failed.status == ProvisioningStatus.FAILED
    assert failed.progress == 40
    assert failed.error == "worker lost"
    assert status_store.fail(7, "again") is None
    assert status_store.get(7).error == "worker lost"

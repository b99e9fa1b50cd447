from app.crud import (
    account as account_crud,
    warehouse as warehouse_crud,
    location as location_crud,
    uom as uom_crud,
    doc_type as doc_type_crud,
    doc_perm as doc_perm_crud,
    audit_log as audit_log_crud,
)
from app.schemas.provisioning import ProvisioningStatus, ProvisioningStatusRecord
from app.services.seed_data import SeedPipeline
from app.services.seed_data.defaults import (
    DEFAULT_CHART_OF_ACCOUNTS,
    DEFAULT_DOC_TYPES,
    DEFAULT_LOCATIONS,
    DEFAULT_UOMS,
)
from app.services.status_store import status_store


def _row_counts(db, tenant_id):
    return {
        "accounts": account_crud.count(db, tenant_id=tenant_id),
        "warehouses": warehouse_crud.count(db, tenant_id=tenant_id),
        "locations": location_crud.count(db, tenant_id=tenant_id),
        "uoms": uom_crud.count(db),
        "doc_types": doc_type_crud.count(db),
        "doc_perms": doc_perm_crud.count(db),
        "audit_logs": audit_log_crud.count(db, tenant_id=tenant_id),
    }


def test_run_seeds_everything_and_activates_tenant(db, make_tenant):
    tenant, _ = make_tenant()

    record = SeedPipeline().run(db, tenant.id)

    assert record.status == ProvisioningStatus.READY
    assert record.progress == 100
    assert record.completed_at is not None
    assert status_store.get(tenant.id).status == ProvisioningStatus.READY

    db.refresh(tenant)
    assert tenant.is_active is True

    counts = _row_counts(db, tenant.id)
    assert counts["accounts"] == len(DEFAULT_CHART_OF_ACCOUNTS)
    assert counts["warehouses"] == 1
    assert counts["locations"] == len(DEFAULT_LOCATIONS)
    assert counts["uoms"] == len(DEFAULT_UOMS) == 44
    assert counts["doc_types"] == len(DEFAULT_DOC_TYPES) == 23
    assert counts["doc_perms"] == sum(len(doc["permissions"]) for doc in DEFAULT_DOC_TYPES)
    assert counts["audit_logs"] == 1


def test_account_tree_links_children_to_parents(db, make_tenant):
    tenant, _ = make_tenant()
    pipeline = SeedPipeline()

    pipeline.seed_accounts(db, tenant.id)
    db.commit()

    for code, _, _, _, _, parent_code in DEFAULT_CHART_OF_ACCOUNTS:
        account = account_crud.get_by_key(db, tenant_id=tenant.id, code=code)
        if parent_code is None:
            assert account.parent_account_id is None
        else:
            parent = account_crud.get_by_key(db, tenant_id=tenant.id, code=parent_code)
            assert account.parent_account_id == parent.id


def test_warehouse_default_locations_are_set(db, make_tenant):
    tenant, _ = make_tenant()

    SeedPipeline().seed_warehouse(db, tenant.id)
    db.commit()

    warehouse = warehouse_crud.get_by_key(db, tenant_id=tenant.id, code="MAIN")
    receiving = location_crud.get_by_key(db, tenant_id=tenant.id, warehouse_id=warehouse.id, code="RECEIVING")
    root = location_crud.get_by_key(db, tenant_id=tenant.id, warehouse_id=warehouse.id, code="ROOT")
    assert warehouse.default_receiving_location_id == receiving.id
    assert warehouse.default_picking_location_id == root.id
    assert receiving.parent_id == root.id


def test_seeding_twice_leaves_tables_unchanged(db, make_tenant):
    tenant, _ = make_tenant()
    pipeline = SeedPipeline()

    for _ in range(2):
        pipeline.seed_accounts(db, tenant.id)
        pipeline.seed_warehouse(db, tenant.id)
        pipeline.seed_uoms(db)
        pipeline.seed_defaults(db, tenant.id)
        db.commit()
        counts = _row_counts(db, tenant.id)

    assert counts == {
        "accounts": len(DEFAULT_CHART_OF_ACCOUNTS),
        "warehouses": 1,
        "locations": len(DEFAULT_LOCATIONS),
        "uoms": len(DEFAULT_UOMS),
        "doc_types": len(DEFAULT_DOC_TYPES),
        "doc_perms": sum(len(doc["permissions"]) for doc in DEFAULT_DOC_TYPES),
        "audit_logs": 1,
    }


def test_global_reference_data_is_shared_between_tenants(db, make_tenant):
    first, _ = make_tenant()
    second, _ = make_tenant(domain="globex", email="owner@globex.test")
    pipeline = SeedPipeline()

    pipeline.run(db, first.id)
    pipeline.run(db, second.id)

    assert uom_crud.count(db) == len(DEFAULT_UOMS)
    assert account_crud.count(db, tenant_id=second.id) == len(DEFAULT_CHART_OF_ACCOUNTS)
    assert audit_log_crud.count(db) == 2


def test_failure_marks_status_failed_and_keeps_progress(db, make_tenant, monkeypatch):
    tenant, _ = make_tenant()
    pipeline = SeedPipeline()

    def broken_warehouse(db, tenant_id):
        raise RuntimeError("warehouse table is locked")

    monkeypatch.setattr(pipeline, "seed_warehouse", broken_warehouse)

    record = pipeline.run(db, tenant.id)

    assert record.status == ProvisioningStatus.FAILED
    assert record.progress == 60
    assert record.error == "warehouse table is locked"
    assert status_store.get(tenant.id).status == ProvisioningStatus.FAILED

    db.refresh(tenant)
    assert tenant.is_active is False
    # Steps that finished before the failure keep their rows
    assert account_crud.count(db, tenant_id=tenant.id) == len(DEFAULT_CHART_OF_ACCOUNTS)


def test_rerun_after_failure_completes_without_duplicates(db, make_tenant):
    tenant, _ = make_tenant()
    pipeline = SeedPipeline()

    def broken_uoms(db):
        raise RuntimeError("uom insert failed")

    pipeline.seed_uoms = broken_uoms
    assert pipeline.run(db, tenant.id).status == ProvisioningStatus.FAILED

    del pipeline.seed_uoms
    status_store.advance(tenant.id, ProvisioningStatusRecord(tenant_id=tenant.id))
    record = pipeline.run(db, tenant.id)

    assert record.status == ProvisioningStatus.READY
    assert account_crud.count(db, tenant_id=tenant.id) == len(DEFAULT_CHART_OF_ACCOUNTS)
    assert location_crud.count(db, tenant_id=tenant.id) == len(DEFAULT_LOCATIONS)


def test_missing_tenant_fails(db):
    record = SeedPipeline().run(db, 999)

    assert record.status == ProvisioningStatus.FAILED
    assert "999" in record.error


def test_ready_tenant_is_not_reseeded(db, make_tenant, monkeypatch):
    tenant, _ = make_tenant()
    pipeline = SeedPipeline()
    pipeline.run(db, tenant.id)

    def unexpected(*args):
        raise AssertionError("seeding should have been skipped")

    monkeypatch.setattr(pipeline, "seed_accounts", unexpected)

    assert pipeline.run(db, tenant.id).status == ProvisioningStatus.READY

from typing import Optional
import redis
from app.core.config import settings
from app.core.logging_config import logger
from app.core.transitions import PROVISIONING_RETRY_TRANSITIONS, PROVISIONING_TRANSITIONS, ensure_transition
from app.core.exceptions import InvalidTransitionError
from app.schemas.provisioning import ProvisioningStatus, ProvisioningStatusRecord

PROVISIONING_KEY_PREFIX = "provisioning:"


class ProvisioningStatusStore:
    """
    Ephemeral per-tenant provisioning progress kept in Redis.

    Single writer per tenant (the one running seed pipeline), so set() is a
    plain overwrite. Readers never block on the writer.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self._client = client
        self.ttl_seconds = ttl_seconds or settings.PROVISIONING_STATUS_TTL_SECONDS

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        return self._client

    @staticmethod
    def _key(tenant_id: int) -> str:
        return f"{PROVISIONING_KEY_PREFIX}{tenant_id}"

    def find(self, tenant_id: int) -> Optional[ProvisioningStatusRecord]:
        """Return the stored record, or None if nothing has been written yet."""
        raw = self.client.get(self._key(tenant_id))
        if raw is None:
            return None
        return ProvisioningStatusRecord.model_validate_json(raw)

    def get(self, tenant_id: int) -> ProvisioningStatusRecord:
        """
        Return the tenant's record, or a default PENDING/0% record.

        Covers the gap between the signup commit and the first pipeline
        write, so this never fails for an unknown tenant.
        """
        return self.find(tenant_id) or ProvisioningStatusRecord(tenant_id=tenant_id)

    def set(self, tenant_id: int, record: ProvisioningStatusRecord) -> None:
        self.client.setex(self._key(tenant_id), self.ttl_seconds, record.model_dump_json())

    def advance(self, tenant_id: int, record: ProvisioningStatusRecord) -> ProvisioningStatusRecord:
        """
        Write a record only if it is a legal move from the current one.

        Status moves forward through the seed sequence or jumps to FAILED,
        and progress never decreases within an attempt.
        """
        current = self.get(tenant_id)
        ensure_transition(PROVISIONING_TRANSITIONS, current.status, record.status, "provisioning status")
        restarting = current.status == ProvisioningStatus.FAILED and record.status == ProvisioningStatus.PENDING
        if not restarting and record.progress < current.progress:
            raise InvalidTransitionError(
                f"Provisioning progress cannot go from {current.progress} to {record.progress}"
            )
        self.set(tenant_id, record)
        logger.info(
            f"Provisioning status for tenant {tenant_id}: {record.status.value} ({record.progress}%)"
        )
        return record

    def restart(self, tenant_id: int, record: ProvisioningStatusRecord) -> ProvisioningStatusRecord:
        """
        Begin a new attempt from any status short of READY.

        Used by retries only; progress drops back to the new record's value.
        """
        current = self.get(tenant_id)
        ensure_transition(PROVISIONING_RETRY_TRANSITIONS, current.status, record.status, "provisioning status")
        self.set(tenant_id, record)
        logger.info(
            f"Provisioning for tenant {tenant_id} restarted from {current.status.value} ({current.progress}%)"
        )
        return record

    def fail(self, tenant_id: int, error: str) -> Optional[ProvisioningStatusRecord]:
        """Record FAILED at the current progress. A finished attempt is left as it is."""
        current = self.get(tenant_id)
        if current.status.is_terminal:
            return None
        failed = current.model_copy(
            update={
                "status": ProvisioningStatus.FAILED,
                "current_step": "Provisioning failed",
                "error": error,
                "completed_at": None,
            }
        )
        return self.advance(tenant_id, failed)


# Create singleton instance
status_store = ProvisioningStatusStore()

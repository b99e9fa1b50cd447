from app.crud.base import CRUDBase
from app.models.audit_log import AuditLog


class CRUDAuditLog(CRUDBase[AuditLog]):
    """Audit entries; one-off events are keyed by event_key."""
    unique_fields = ("event_key",)


# Create singleton instance
audit_log = CRUDAuditLog(AuditLog)

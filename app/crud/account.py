from app.crud.base import CRUDBase
from app.models.account import Account


class CRUDAccount(CRUDBase[Account]):
    """Chart of accounts rows, unique per (tenant_id, code)."""
    unique_fields = ("tenant_id", "code")


# Create singleton instance
account = CRUDAccount(Account)

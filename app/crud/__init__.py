from app.crud.base import CRUDBase
from .tenant import tenant
from .user import user
from .oauth_state import oauth_state
from .email_verification import email_verification_token
from .account import account
from .warehouse import warehouse, location
from .reference_data import uom, doc_type, doc_perm
from .audit_log import audit_log

__all__ = [
    "CRUDBase",
    "tenant",
    "user",
    "oauth_state",
    "email_verification_token",
    "account",
    "warehouse",
    "location",
    "uom",
    "doc_type",
    "doc_perm",
    "audit_log",
]

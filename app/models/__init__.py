from .account import Account
from .audit_log import AuditLog
from .doc_type import DocType, DocPerm
from .email_verification import EmailVerificationToken
from .oauth_state import OAuthState
from .tenant import Tenant, PaymentProvider, PaymentProviderStatus, OnboardingStep
from .uom import Uom
from .user import User
from .warehouse import Warehouse, Location

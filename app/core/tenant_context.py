from fastapi import Depends
from app.core.exceptions import ForbiddenError
from app.models.user import User
from app.dependencies import get_current_user


def get_authorized_tenant_id(tenant_id: int, current_user: User = Depends(get_current_user)) -> int:
    """
    FastAPI dependency for routes with a {tenant_id} path parameter.

    Resolves the authenticated user and checks the path tenant is the
    user's own tenant.

    Args:
        tenant_id: Tenant ID from the request path
        current_user: Authenticated user from JWT token

    Returns:
        The verified tenant ID

    Raises:
        ForbiddenError: If the user belongs to a different tenant
    """
    if current_user.tenant_id != tenant_id:
        raise ForbiddenError()
    return tenant_id

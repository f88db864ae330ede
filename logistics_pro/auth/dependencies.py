# auth/dependencies.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from logistics_pro.auth.tokens import Identity, InvalidToken, read_token
from logistics_pro.core.constants import Role, ADMIN_ROLES
from logistics_pro.core.errors import Forbidden, Unauthorized

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Authentication token required")

    try:
        identity = read_token(credentials.credentials)
    except InvalidToken:
        raise Forbidden("Invalid or expired token")

    request.state.identity = identity
    return identity


def require_roles(*roles: Role):
    allowed = frozenset(roles)

    async def _dep(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise Forbidden("Insufficient role for this operation")
        return identity

    return _dep


get_current_admin = require_roles(*ADMIN_ROLES)
get_current_driver = require_roles(Role.DRIVER)

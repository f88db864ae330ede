import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi_users.jwt import decode_jwt, generate_jwt

from logistics_pro.auth.config import AuthConfig, auth_config
from logistics_pro.core.constants import Role, ADMIN_ROLES
from logistics_pro.utils.timezones import utcnow


@dataclass(frozen=True)
class Identity:
    """Decoded bearer token: who is calling and with which role."""
    user_id: str
    phone: str
    role: Role
    token_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


@dataclass(frozen=True)
class IssuedToken:
    token: str
    token_id: str
    expires_at: datetime


class InvalidToken(Exception):
    pass


def issue_token(user_id: str, phone: str, role: str, config: AuthConfig = auth_config) -> IssuedToken:
    token_id = str(uuid.uuid4())
    data = {
        "sub": user_id,
        "phone": phone,
        "role": role,
        "jti": token_id,
        "aud": config.audience,
    }
    token = generate_jwt(data, config.secret, config.lifetime_seconds, algorithm=config.algorithm)
    expires_at = utcnow() + timedelta(seconds=config.lifetime_seconds)
    return IssuedToken(token=token, token_id=token_id, expires_at=expires_at)


def read_token(token: str, config: AuthConfig = auth_config) -> Identity:
    try:
        payload = decode_jwt(token, config.secret, [config.audience], algorithms=[config.algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc

    try:
        return Identity(
            user_id=payload["sub"],
            phone=payload["phone"],
            role=Role(payload["role"]),
            token_id=payload.get("jti"),
        )
    except (KeyError, ValueError) as exc:
        raise InvalidToken(f"malformed claims: {exc}") from exc

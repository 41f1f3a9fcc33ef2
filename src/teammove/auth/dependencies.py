# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""FastAPI authentication dependencies"""
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import settings
from ..logging_config import bind_context, get_logger
from ..models.organization import OrganizationRole

logger = get_logger(__name__)

security = HTTPBearer(auto_error=True)


class User(BaseModel):
    """Authenticated organization account, decoded from the bearer token."""

    id: str
    email: str
    organization_id: UUID
    role: str = OrganizationRole.ORGANIZATION.value

    @property
    def is_admin(self) -> bool:
        return self.role == OrganizationRole.ADMIN.value


def decode_token(token: str) -> dict:
    options = {"verify_aud": bool(settings.jwt_audience)}
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience or None,
        options=options,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """Validate JWT token and return current user"""
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as e:
        logger.warning("jwt_validation_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user_id = payload.get("sub")
    organization_id = payload.get("organization_id") or user_id
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject",
        )
    try:
        org_uuid = UUID(str(organization_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed organization id",
        )

    bind_context(organization_id=str(org_uuid))
    return User(
        id=str(user_id),
        email=payload.get("email", ""),
        organization_id=org_uuid,
        role=payload.get("role", OrganizationRole.ORGANIZATION.value),
    )


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency that only lets platform administrators through"""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin role required")
    return user

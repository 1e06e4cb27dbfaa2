from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.app.backend import get_backend
from api.app.config import settings
from common.clients.base import Backend
from common.clients.types import Identity
from common.services.gate import GateResult, GateStatus, check_access

bearer = HTTPBearer(auto_error=False)

REDIRECTS = {
    GateStatus.UNAUTHENTICATED: (401, "/login"),
    GateStatus.FORBIDDEN: (403, "/dashboard"),
}


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


def raise_for_gate(result: GateResult) -> Identity:
    if result.ok and result.identity is not None:
        return result.identity
    status_code, redirect = REDIRECTS[result.status]
    raise HTTPException(
        status_code=status_code,
        detail={"reason": result.status.value, "redirect": redirect},
    )


async def require_identity(
    token: Optional[str] = Depends(get_token),
    backend: Backend = Depends(get_backend),
) -> Identity:
    return raise_for_gate(await check_access(backend, token))


async def require_admin(
    token: Optional[str] = Depends(get_token),
    backend: Backend = Depends(get_backend),
) -> Identity:
    result = await check_access(backend, token, require_admin=True, marker=settings.admin_role_marker)
    return raise_for_gate(result)

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.app.backend import get_backend
from api.app.security import get_token, require_identity
from common.clients.base import Backend
from common.clients.errors import BackendError
from common.clients.types import AuthSession, Identity

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginPayload(BaseModel):
    email: str
    password: str


class LogoutPayload(BaseModel):
    refresh_token: Optional[str] = None


@router.post("/login", response_model=AuthSession)
async def login(payload: LoginPayload, backend: Backend = Depends(get_backend)):
    try:
        return await backend.login(payload.email, payload.password)
    except BackendError as exc:
        if exc.status_code in (400, 401):
            raise HTTPException(status_code=401, detail="Invalid email or password")
        raise


@router.post("/logout")
async def logout(
    payload: LogoutPayload | None = None,
    token: Optional[str] = Depends(get_token),
    backend: Backend = Depends(get_backend),
):
    if not token:
        raise HTTPException(status_code=401, detail={"reason": "unauthenticated", "redirect": "/login"})
    await backend.logout(token, payload.refresh_token if payload else None)
    return {"status": "ok", "redirect": "/login"}


@router.get("/session")
async def session(identity: Identity = Depends(require_identity)):
    return {"authenticated": True, "identity": identity, "redirect": "/dashboard"}

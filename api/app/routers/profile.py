from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from api.app.backend import get_backend
from api.app.config import settings
from api.app.security import get_token, raise_for_gate, require_admin
from common.clients.base import Backend
from common.clients.types import DisplayProfile, Identity
from common.services.gate import GateResult, GateStatus
from common.services.profile import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    display_name: str


def get_profile_service(backend: Backend = Depends(get_backend)) -> ProfileService:
    return ProfileService(
        backend,
        public_collection=settings.public_profile_collection,
        public_name_fields=settings.profile_name_fields,
        max_logo_bytes=settings.max_logo_bytes,
    )


@router.get("/public", response_model=DisplayProfile)
async def public_profile(service: ProfileService = Depends(get_profile_service)):
    return await service.read_public()


@router.get("", response_model=DisplayProfile)
async def read_profile(
    token: Optional[str] = Depends(get_token),
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.read(token)
    if profile is None:
        raise_for_gate(GateResult(GateStatus.UNAUTHENTICATED))
    return profile


@router.patch("", response_model=DisplayProfile)
async def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_admin),
    token: Optional[str] = Depends(get_token),
    service: ProfileService = Depends(get_profile_service),
):
    return await service.update(token, display_name=payload.display_name)


@router.post("/logo", response_model=DisplayProfile)
async def upload_logo(
    file: UploadFile = File(...),
    identity: Identity = Depends(require_admin),
    token: Optional[str] = Depends(get_token),
    service: ProfileService = Depends(get_profile_service),
):
    content = await file.read()
    return await service.upload_logo(
        token, identity, content, file.filename or "logo", file.content_type or ""
    )
